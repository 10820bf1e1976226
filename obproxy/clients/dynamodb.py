"""
DynamoDB-backed record storage for consents and sessions.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import boto3

from obproxy.core.config import StorageSettings


class DynamoDBClient:
    """Record store with the same surface as ``SQLiteStore``."""

    def __init__(self, settings: StorageSettings) -> None:
        if not settings.dynamodb_table_name:
            raise ValueError("DYNAMODB_TABLE_NAME is required for the dynamodb backend.")
        self._settings = settings
        self._resource = boto3.resource("dynamodb", region_name=settings.region_name)
        self._table = self._resource.Table(settings.dynamodb_table_name)

    def put_item(self, item: Dict[str, Any]) -> None:
        """Put an item in the DynamoDB table."""
        self._table.put_item(Item=item)

    def get_item(
        self, *, partition_key: str, sort_key: str
    ) -> Optional[Dict[str, Any]]:
        """Retrieve an item using its key, reading strongly consistent."""
        response = self._table.get_item(
            Key={"pk": partition_key, "sk": sort_key},
            ConsistentRead=True,
        )
        return response.get("Item")

    def delete_item(self, *, partition_key: str, sort_key: str) -> None:
        """Delete an item; missing keys are not an error."""
        self._table.delete_item(Key={"pk": partition_key, "sk": sort_key})


__all__ = ["DynamoDBClient"]
