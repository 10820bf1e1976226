"""
Read projections over stored consents used to authenticate proxied calls.

Every projection degrades to ``None`` instead of raising: an unresolved consent
must not abort a proxied call, which then proceeds without credentials and is
rejected by the resource server.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from obproxy.services.consent_store import ConsentKeys, ConsentStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ResolvedCredentials:
    """Access token and permissions resolved for a consent."""

    access_token: Optional[str] = None
    permissions: Optional[List[str]] = None


class ConsentResolver:
    """Resolve tokens, permissions and account-request ids for a consent."""

    def __init__(self, consent_store: ConsentStore) -> None:
        self._consents = consent_store

    async def _lookup(self, keys: ConsentKeys) -> Optional[Dict[str, Any]]:
        try:
            return await self._consents.get(keys)
        except Exception:  # noqa: BLE001
            logger.warning("Consent lookup failed for %r", keys, exc_info=True)
            return None

    @staticmethod
    def _token_value(consent: Optional[Dict[str, Any]]) -> Optional[str]:
        if not consent:
            return None
        token = consent.get("token")
        if not isinstance(token, dict):
            return None
        return token.get("access_token")

    async def access_token_and_permissions(self, keys: ConsentKeys) -> ResolvedCredentials:
        consent = await self._lookup(keys)
        access_token = self._token_value(consent)
        if access_token is None:
            return ResolvedCredentials()
        return ResolvedCredentials(
            access_token=access_token,
            permissions=consent.get("permissions"),
        )

    async def access_token(self, keys: ConsentKeys) -> Optional[str]:
        return self._token_value(await self._lookup(keys))

    async def account_request_id(self, keys: ConsentKeys) -> Optional[str]:
        consent = await self._lookup(keys)
        if not consent:
            return None
        return consent.get("accountRequestId")


__all__ = ["ConsentResolver", "ResolvedCredentials"]
