"""
Proxy for Open Banking resource requests made on behalf of a session user.

Each call runs the same linear pipeline: extract identity headers, resolve the
resource server target and scope, resolve the consent token, dispatch the
outbound GET, optionally hand the exchange to the validation pipeline, and
relay the upstream status with the resulting body. Any failure ends the
pipeline with the upstream status when one was received, else 500, and the
failure message as the body.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any, Callable, Mapping, Optional, Tuple

from obproxy.clients import (
    AuthorisationServerDirectory,
    RequestIdentity,
    ResourceServerClient,
    UpstreamResponseError,
)
from obproxy.services.consent_resolver import ConsentResolver, ResolvedCredentials
from obproxy.services.consent_store import ConsentKeys
from obproxy.services.request_headers import extract_headers
from obproxy.services.sessions import SessionStore
from obproxy.services.validation import ValidationContext

logger = logging.getLogger(__name__)

OPEN_BANKING_PREFIX = "/open-banking"
_VERSION_SEGMENT = re.compile(r"^v\d+(\.\d+)*$")


@dataclass(slots=True)
class ProxyResponse:
    """Status and body relayed to the original caller."""

    status_code: int
    body: Any
    media_type: Optional[str] = None


def scope_and_url(path: str, host: str) -> Tuple[str, Optional[str]]:
    """
    Build the proxied URL for ``path`` and derive the consent scope from it.

    The scope is the first segment after ``/open-banking`` that is not an API
    version, so ``/v1.1/accounts`` and ``/aisp/accounts`` give ``accounts``
    and ``aisp``.
    """
    proxied_path = f"{OPEN_BANKING_PREFIX}{path}"
    segments = proxied_path.split("/")[2:]
    if segments and _VERSION_SEGMENT.match(segments[0]):
        segments = segments[1:]
    scope = segments[0] if segments and segments[0] else None
    return f"{host}{proxied_path}", scope


class RequestProxy:
    """Forward inbound resource requests to the user's ASPSP."""

    def __init__(
        self,
        *,
        directory: AuthorisationServerDirectory,
        sessions: SessionStore,
        resolver: ConsentResolver,
        resource_server: ResourceServerClient,
        validation: ValidationContext,
        interaction_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._directory = directory
        self._sessions = sessions
        self._resolver = resolver
        self._resource_server = resource_server
        self._validation = validation
        self._interaction_id = interaction_id_factory

    async def _resolve_credentials(
        self, username: Optional[str], authorisation_server_id: Optional[str], scope: Optional[str]
    ) -> ResolvedCredentials:
        try:
            keys = ConsentKeys(username, authorisation_server_id, scope)
            return await self._resolver.access_token_and_permissions(keys)
        except Exception:  # noqa: BLE001
            logger.warning(
                "No consent credentials for %s at %s (%s)",
                username,
                authorisation_server_id,
                scope,
            )
            return ResolvedCredentials()

    async def handle(self, path: str, headers: Mapping[str, str]) -> ProxyResponse:
        try:
            request_headers = await extract_headers(
                headers,
                directory=self._directory,
                sessions=self._sessions,
                interaction_id_factory=self._interaction_id,
            )
            host = await self._directory.resource_server_host(
                request_headers.authorisation_server_id
            )
            proxied_url, scope = scope_and_url(path, host)
            credentials = await self._resolve_credentials(
                request_headers.username, request_headers.authorisation_server_id, scope
            )
            identity = RequestIdentity(
                authorisation_server_id=request_headers.authorisation_server_id,
                fapi_financial_id=request_headers.fapi_financial_id,
                interaction_id=request_headers.interaction_id,
                session_id=request_headers.session_id,
                access_token=credentials.access_token,
                permissions=credentials.permissions,
                validation_run_id=request_headers.validation_run_id,
            )
            logger.debug(
                "Proxying %s scope=%s interaction_id=%s fapi_financial_id=%s",
                proxied_url,
                scope,
                identity.interaction_id,
                identity.fapi_financial_id,
            )

            outbound = self._resource_server.build_request(proxied_url, identity)
            response = await self._resource_server.send(outbound)

            if self._validation.enabled:
                body = await self._validation.validate(
                    outbound,
                    response,
                    {
                        "interactionId": identity.interaction_id,
                        "sessionId": identity.session_id,
                        "permissions": identity.permissions,
                        "authorisationServerId": identity.authorisation_server_id,
                    },
                )
                return ProxyResponse(response.status_code, body)

            return ProxyResponse(
                response.status_code,
                response.content,
                media_type=response.headers.get("content-type"),
            )
        except UpstreamResponseError as exc:
            return ProxyResponse(
                exc.status_code,
                str(exc),
                media_type=exc.response.headers.get("content-type", "text/plain"),
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Proxied request for %s failed: %s", path, exc)
            return ProxyResponse(
                HTTPStatus.INTERNAL_SERVER_ERROR, str(exc), media_type="text/plain"
            )


__all__ = ["OPEN_BANKING_PREFIX", "ProxyResponse", "RequestProxy", "scope_and_url"]
