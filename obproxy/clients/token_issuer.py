"""
OAuth token endpoint client for ASPSP authorisation servers.

Exchanges authorisation codes and client credentials for access tokens.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class TokenIssuerError(Exception):
    """Raised when the token endpoint fails or returns an error."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TokenIssuerClient:
    """POST OAuth grants to ``{auth_server_host}/token``."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    async def post_token(
        self,
        auth_server_host: Optional[str],
        client_id: Optional[str],
        client_secret: Optional[str],
        payload: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Submit a token grant and return the token payload.

        The payload follows the OAuth wire format (``access_token``,
        ``expires_in``, ``token_type`` and optionally ``refresh_token``).
        """
        if not auth_server_host:
            raise TokenIssuerError("Authorisation server token endpoint is not configured.")

        url = f"{auth_server_host}/token"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    url,
                    data=payload,
                    auth=(client_id or "", client_secret or ""),
                )
        except httpx.HTTPError as exc:
            raise TokenIssuerError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            logger.error("token request to %s failed: %s", url, response.status_code)
            raise TokenIssuerError(response.text, status_code=response.status_code)

        token_payload = response.json()
        if not token_payload.get("access_token"):
            raise TokenIssuerError("Incomplete token payload returned from token endpoint.")
        return token_payload


__all__ = ["TokenIssuerClient", "TokenIssuerError"]
