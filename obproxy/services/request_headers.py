"""Identity header extraction for inbound proxied requests."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from obproxy.clients import AuthorisationServerDirectory
from obproxy.services.sessions import SessionStore

SESSION_HEADER = "authorization"
AUTHORISATION_SERVER_HEADER = "x-authorization-server-id"
INTERACTION_ID_HEADER = "x-fapi-interaction-id"
VALIDATION_RUN_HEADER = "x-validation-run-id"


@dataclass(slots=True)
class RequestHeaders:
    session_id: Optional[str]
    authorisation_server_id: Optional[str]
    fapi_financial_id: str
    interaction_id: str
    username: Optional[str]
    validation_run_id: Optional[str] = None


async def extract_headers(
    headers: Mapping[str, str],
    *,
    directory: AuthorisationServerDirectory,
    sessions: SessionStore,
    interaction_id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> RequestHeaders:
    """Derive the identity of an inbound call from its headers."""
    normalized = {key.lower(): value for key, value in headers.items()}
    session_id = normalized.get(SESSION_HEADER)
    authorisation_server_id = normalized.get(AUTHORISATION_SERVER_HEADER)

    return RequestHeaders(
        session_id=session_id,
        authorisation_server_id=authorisation_server_id,
        fapi_financial_id=await directory.fapi_financial_id(authorisation_server_id),
        interaction_id=normalized.get(INTERACTION_ID_HEADER) or interaction_id_factory(),
        username=await sessions.username_for_session(session_id),
        validation_run_id=normalized.get(VALIDATION_RUN_HEADER),
    )


__all__ = [
    "AUTHORISATION_SERVER_HEADER",
    "INTERACTION_ID_HEADER",
    "RequestHeaders",
    "SESSION_HEADER",
    "VALIDATION_RUN_HEADER",
    "extract_headers",
]
