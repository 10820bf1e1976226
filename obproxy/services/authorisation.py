"""
Consent write path: account-request registration and authorisation code grants.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from obproxy.clients import (
    AuthorisationServerDirectory,
    TokenIssuerClient,
    TokenIssuerError,
)
from obproxy.services.consent_store import ConsentKeys, ConsentStore

logger = logging.getLogger(__name__)


class AuthorisationService:
    """Record account requests and attach tokens once the user has authorised."""

    def __init__(
        self,
        consent_store: ConsentStore,
        directory: AuthorisationServerDirectory,
        token_issuer: TokenIssuerClient,
        redirect_url: Optional[str],
    ) -> None:
        self._consents = consent_store
        self._directory = directory
        self._token_issuer = token_issuer
        self._redirect_url = redirect_url

    async def register_account_request(
        self,
        *,
        username: str,
        authorisation_server_id: str,
        scope: str,
        account_request_id: str,
        permissions: Optional[List[str]],
        expiration_date_time: Optional[str] = None,
    ) -> Dict[str, Any]:
        keys = ConsentKeys(username, authorisation_server_id, scope)
        return await self._consents.put(
            keys,
            {
                "username": username,
                "authorisationServerId": authorisation_server_id,
                "scope": scope,
                "accountRequestId": account_request_id,
                "permissions": permissions,
                "expirationDateTime": expiration_date_time,
                "authorisationCode": None,
                "token": None,
            },
        )

    async def authorisation_code_granted(
        self,
        *,
        username: str,
        authorisation_server_id: str,
        scope: str,
        authorisation_code: str,
    ) -> Dict[str, Any]:
        """Exchange ``authorisation_code`` for a token and store it on the consent."""
        if not self._redirect_url:
            raise TokenIssuerError(
                "SOFTWARE_STATEMENT_REDIRECT_URL is a required variable."
            )
        server = self._directory.get(authorisation_server_id)
        token = await self._token_issuer.post_token(
            server.auth_server_host,
            server.client_id,
            server.client_secret,
            {
                "grant_type": "authorization_code",
                "code": authorisation_code,
                "redirect_uri": self._redirect_url,
            },
        )

        keys = ConsentKeys(username, authorisation_server_id, scope)
        existing = await self._consents.get(keys) or {}
        logger.info("Authorisation code granted for %s", keys.consent_id)
        return await self._consents.put(
            keys,
            {
                "username": username,
                "authorisationServerId": authorisation_server_id,
                "scope": scope,
                "accountRequestId": existing.get("accountRequestId"),
                "expirationDateTime": existing.get("expirationDateTime"),
                "authorisationCode": authorisation_code,
                "token": token,
            },
        )


__all__ = ["AuthorisationService"]
