"""
Directory of ASPSP authorisation servers known to this deployment.
"""

from __future__ import annotations

from typing import Dict, List

from obproxy.core.config import AuthorisationServerConfig, OpenBankingSettings


class AuthorisationServerNotFoundError(LookupError):
    """Raised when an authorisation server id has no directory entry."""


class AuthorisationServerDirectory:
    """Resolve resource server locations and FAPI identifiers per server."""

    def __init__(self, settings: OpenBankingSettings) -> None:
        self._servers: Dict[str, AuthorisationServerConfig] = dict(
            settings.authorisation_servers
        )
        self._api_version = settings.api_version

    def ids(self) -> List[str]:
        return list(self._servers)

    def get(self, authorisation_server_id: str | None) -> AuthorisationServerConfig:
        if not authorisation_server_id or authorisation_server_id not in self._servers:
            raise AuthorisationServerNotFoundError(
                f"Unknown authorisation server id: {authorisation_server_id!r}"
            )
        return self._servers[authorisation_server_id]

    async def resource_server_host(self, authorisation_server_id: str | None) -> str:
        return self.get(authorisation_server_id).resource_server_host

    async def resource_server_path(self, authorisation_server_id: str | None) -> str:
        """Versioned Open Banking base path on the resource server."""
        host = await self.resource_server_host(authorisation_server_id)
        return f"{host}/open-banking/{self._api_version}"

    async def fapi_financial_id(self, authorisation_server_id: str | None) -> str:
        return self.get(authorisation_server_id).fapi_financial_id


__all__ = ["AuthorisationServerDirectory", "AuthorisationServerNotFoundError"]
