"""
Audit stream publishing validation reports to an SQS-compatible queue.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import boto3

from obproxy.core.config import ValidationSettings

logger = logging.getLogger(__name__)


class AuditStreamClient:
    """Send validation reports to the configured audit queue."""

    def __init__(self, settings: ValidationSettings) -> None:
        self._settings = settings
        self._client: Any = None
        self._queue_url: Optional[str] = None

    async def init(self) -> None:
        """Open the broker connection and resolve the queue url."""
        self._client = await asyncio.to_thread(
            boto3.client,
            "sqs",
            region_name=self._settings.region_name,
            endpoint_url=self._settings.audit_endpoint_url,
        )
        response = await asyncio.to_thread(
            self._client.get_queue_url, QueueName=self._settings.audit_queue_name
        )
        self._queue_url = response["QueueUrl"]
        logger.info("Audit stream connected to %s", self._queue_url)

    async def send(self, record: Dict[str, Any]) -> str:
        """Publish one record and return the broker message id."""
        if self._client is None or self._queue_url is None:
            raise RuntimeError("Audit stream used before init().")
        response = await asyncio.to_thread(
            self._client.send_message,
            QueueUrl=self._queue_url,
            MessageBody=json.dumps(record, default=str),
        )
        return response["MessageId"]


__all__ = ["AuditStreamClient"]
