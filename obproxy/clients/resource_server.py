"""
HTTP client for ASPSP resource servers.

Builds the FAPI identity headers expected by Open Banking resource APIs and
issues the outbound GET calls used by the request proxy and the consent status
checks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class UpstreamResponseError(Exception):
    """Raised when a resource server answers with a non-2xx status."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(response.text)
        self.response = response
        self.status_code = response.status_code


class UpstreamTransportError(Exception):
    """Raised when no response was received from a resource server."""


@dataclass(slots=True)
class RequestIdentity:
    """Identity and credential values attached to an outbound call."""

    authorisation_server_id: Optional[str]
    fapi_financial_id: Optional[str]
    interaction_id: str
    session_id: Optional[str] = None
    access_token: Optional[str] = None
    permissions: Optional[List[str]] = None
    validation_run_id: Optional[str] = None


class ResourceServerClient:
    """Issue outbound calls to ASPSP resource servers."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    @staticmethod
    def build_headers(identity: RequestIdentity) -> Dict[str, str]:
        headers = {"accept": "application/json"}
        if identity.access_token:
            headers["authorization"] = f"Bearer {identity.access_token}"
        if identity.fapi_financial_id:
            headers["x-fapi-financial-id"] = identity.fapi_financial_id
        headers["x-fapi-interaction-id"] = identity.interaction_id
        if identity.validation_run_id:
            headers["x-validation-run-id"] = identity.validation_run_id
        if identity.permissions:
            headers["x-permissions"] = " ".join(identity.permissions)
        return headers

    def build_request(self, url: str, identity: RequestIdentity) -> httpx.Request:
        return httpx.Request("GET", url, headers=self.build_headers(identity))

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send ``request`` and return the response, raising on non-2xx."""
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.send(request)
        except httpx.HTTPError as exc:
            logger.error("error getting %s: %s", request.url, exc)
            raise UpstreamTransportError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            logger.error(
                "error getting %s: status %s", request.url, response.status_code
            )
            raise UpstreamResponseError(response)
        return response

    async def get(self, url: str, identity: RequestIdentity) -> httpx.Response:
        return await self.send(self.build_request(url, identity))

    async def get_account_request(
        self,
        account_request_id: str,
        resource_path: str,
        identity: RequestIdentity,
    ) -> Dict[str, Any]:
        """Fetch an account-request resource by id."""
        url = f"{resource_path}/account-requests/{account_request_id}"
        response = await self.get(url, identity)
        return response.json()


__all__ = [
    "RequestIdentity",
    "ResourceServerClient",
    "UpstreamResponseError",
    "UpstreamTransportError",
]
