"""Session-id to username resolution backed by the record store."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from obproxy.services.consent_store import RecordStore

SESSIONS_COLLECTION = "sessions"


class SessionStore:
    """Create, resolve and destroy user sessions."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def create(self, username: str) -> str:
        session_id = str(uuid.uuid4())
        self._store.put_item(
            {
                "pk": SESSIONS_COLLECTION,
                "sk": session_id,
                "username": username,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
        )
        return session_id

    async def username_for_session(self, session_id: Optional[str]) -> Optional[str]:
        if not session_id:
            return None
        item = self._store.get_item(partition_key=SESSIONS_COLLECTION, sort_key=session_id)
        if not item:
            return None
        return item.get("username")

    async def delete(self, session_id: str) -> None:
        self._store.delete_item(partition_key=SESSIONS_COLLECTION, sort_key=session_id)


__all__ = ["SESSIONS_COLLECTION", "SessionStore"]
