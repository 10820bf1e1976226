"""
Client-credentials grants used for TPP-level calls to resource servers.
"""

from __future__ import annotations

from typing import Tuple

from obproxy.clients import AuthorisationServerDirectory, TokenIssuerClient

CLIENT_CREDENTIALS_SCOPE = "accounts payments"


class SetupRequestService:
    """Obtain a grant-credential access token and resource path per server."""

    def __init__(
        self,
        directory: AuthorisationServerDirectory,
        token_issuer: TokenIssuerClient,
    ) -> None:
        self._directory = directory
        self._token_issuer = token_issuer

    async def access_token_and_resource_path(
        self, authorisation_server_id: str
    ) -> Tuple[str, str]:
        server = self._directory.get(authorisation_server_id)
        token_payload = await self._token_issuer.post_token(
            server.auth_server_host,
            server.client_id,
            server.client_secret,
            {"grant_type": "client_credentials", "scope": CLIENT_CREDENTIALS_SCOPE},
        )
        resource_path = await self._directory.resource_server_path(authorisation_server_id)
        return token_payload["access_token"], resource_path


__all__ = ["CLIENT_CREDENTIALS_SCOPE", "SetupRequestService"]
