"""
Response validation pipeline hand-off.

The proxy hands each outbound request/response pair to a ``ResponseValidator``
when ``VALIDATE_RESPONSE`` is enabled. The validator and the audit stream are
process-wide and built lazily on first use; concurrent first callers wait on
the same construction instead of building their own.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from obproxy.clients import AuditStreamClient
from obproxy.core.config import ValidationSettings

logger = logging.getLogger(__name__)

_REDACTED_HEADERS = {"authorization"}


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ResponseValidator:
    """Record validation reports for proxied responses and return their body."""

    async def validate(
        self,
        request: httpx.Request,
        response: httpx.Response,
        metadata: Dict[str, Any],
        audit_stream: Optional[AuditStreamClient] = None,
    ) -> Any:
        body = _response_body(response)
        if audit_stream is not None:
            await audit_stream.send(self.build_report(request, response, body, metadata))
        return body

    @staticmethod
    def build_report(
        request: httpx.Request,
        response: httpx.Response,
        body: Any,
        metadata: Dict[str, Any],
    ) -> Dict[str, Any]:
        return {
            **metadata,
            "recordedAt": datetime.now(timezone.utc).isoformat(),
            "request": {
                "method": request.method,
                "url": str(request.url),
                "headers": {
                    key: value
                    for key, value in request.headers.items()
                    if key.lower() not in _REDACTED_HEADERS
                },
            },
            "response": {
                "statusCode": response.status_code,
                "headers": dict(response.headers),
                "body": body,
            },
        }


async def build_response_validator() -> ResponseValidator:
    return ResponseValidator()


async def build_audit_stream(settings: ValidationSettings) -> AuditStreamClient:
    stream = AuditStreamClient(settings)
    await stream.init()
    return stream


class ValidationContext:
    """Owns the process-wide validator and audit stream."""

    def __init__(
        self,
        settings: ValidationSettings,
        *,
        validator_factory: Callable[[], Awaitable[ResponseValidator]] = build_response_validator,
        audit_stream_factory: Callable[
            [ValidationSettings], Awaitable[AuditStreamClient]
        ] = build_audit_stream,
    ) -> None:
        self._settings = settings
        self._validator_factory = validator_factory
        self._audit_stream_factory = audit_stream_factory
        self._validator: Optional[ResponseValidator] = None
        self._audit_stream: Optional[AuditStreamClient] = None
        self._validator_lock = asyncio.Lock()
        self._audit_stream_lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self._settings.validate_response

    async def validator(self) -> ResponseValidator:
        if self._validator is None:
            async with self._validator_lock:
                if self._validator is None:
                    logger.info("Initialising response validator")
                    self._validator = await self._validator_factory()
        return self._validator

    async def audit_stream(self) -> Optional[AuditStreamClient]:
        if not self._settings.audit_stream_configured:
            return None
        if self._audit_stream is None:
            async with self._audit_stream_lock:
                if self._audit_stream is None:
                    logger.info("Initialising audit stream")
                    self._audit_stream = await self._audit_stream_factory(self._settings)
        return self._audit_stream

    async def validate(
        self,
        request: httpx.Request,
        response: httpx.Response,
        metadata: Dict[str, Any],
    ) -> Any:
        validator = await self.validator()
        return await validator.validate(
            request, response, metadata, audit_stream=await self.audit_stream()
        )


__all__ = [
    "ResponseValidator",
    "ValidationContext",
    "build_audit_stream",
    "build_response_validator",
]
