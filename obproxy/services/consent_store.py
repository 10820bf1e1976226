"""
Persistent storage of user consents per authorisation server and scope.

A consent record is keyed by ``(username, authorisationServerId, scope)`` and
stored under the literal id ``"{username}:::{authorisationServerId}:::{scope}"``.
Existing deployments already hold records under that id, so the separator must
not change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

AUTH_SERVER_USER_CONSENTS_COLLECTION = "authorisationServerUserConsents"
CONSENT_ID_SEPARATOR = ":::"

_STORAGE_KEYS = ("pk", "sk")


class RecordStore(Protocol):
    def put_item(self, item: Dict[str, Any]) -> None: ...

    def get_item(
        self, *, partition_key: str, sort_key: str
    ) -> Optional[Dict[str, Any]]: ...

    def delete_item(self, *, partition_key: str, sort_key: str) -> None: ...


@dataclass(frozen=True, slots=True)
class ConsentKeys:
    """Identifies a single consent record."""

    username: str
    authorisation_server_id: str
    scope: str

    @property
    def consent_id(self) -> str:
        return CONSENT_ID_SEPARATOR.join(
            (self.username, self.authorisation_server_id, self.scope)
        )


class ConsentStore:
    """Upsert, read and delete consent records with merge-on-write."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def put(self, keys: ConsentKeys, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Write ``payload`` as the consent for ``keys`` and return the stored record.

        Fields in ``payload`` replace the stored record. Permissions are carried
        forward from the stored record only when both share the same
        ``accountRequestId``; otherwise they reset to ``None``. A payload that
        carries its own ``permissions`` key wins over both.
        """
        existing = await self.get(keys) or {}
        if (
            existing
            and existing.get("accountRequestId") == payload.get("accountRequestId")
        ):
            permissions = existing.get("permissions")
        else:
            permissions = None

        record: Dict[str, Any] = {"permissions": permissions}
        record.update(payload)
        record["id"] = keys.consent_id

        self._store.put_item(
            {
                **record,
                "pk": AUTH_SERVER_USER_CONSENTS_COLLECTION,
                "sk": keys.consent_id,
            }
        )
        logger.debug("Stored consent %s", keys.consent_id)
        return record

    async def get(self, keys: ConsentKeys) -> Optional[Dict[str, Any]]:
        item = self._store.get_item(
            partition_key=AUTH_SERVER_USER_CONSENTS_COLLECTION,
            sort_key=keys.consent_id,
        )
        if item is None:
            return None
        return {key: value for key, value in item.items() if key not in _STORAGE_KEYS}

    async def delete(self, keys: ConsentKeys) -> None:
        self._store.delete_item(
            partition_key=AUTH_SERVER_USER_CONSENTS_COLLECTION,
            sort_key=keys.consent_id,
        )
        logger.info("Deleted consent %s", keys.consent_id)


__all__ = [
    "AUTH_SERVER_USER_CONSENTS_COLLECTION",
    "ConsentKeys",
    "ConsentStore",
    "RecordStore",
]
