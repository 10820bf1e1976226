"""
FastAPI routes for the consent proxy.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse

from obproxy.clients import AuthorisationServerNotFoundError, TokenIssuerError
from obproxy.core.config import AppSettings
from obproxy.dependencies import (
    get_app_settings,
    get_authorisation_server_directory,
    get_authorisation_service,
    get_consent_status_aggregator,
    get_consent_store,
    get_request_proxy,
    get_session_store,
)
from obproxy.schemas import (
    AccountRequestRegistration,
    AuthorisationCodeGranted,
    ConsentStatusResponse,
    ConsentedServersResponse,
)
from obproxy.services import ConsentKeys, ProxyResponse
from obproxy.services.request_headers import AUTHORISATION_SERVER_HEADER, SESSION_HEADER

router = APIRouter()
logger = logging.getLogger(__name__)


async def _session_user(request: Request, sessions: Any) -> tuple[str, str]:
    """Return ``(session_id, username)`` or reject the call as unauthorised."""
    session_id = request.headers.get(SESSION_HEADER)
    username = await sessions.username_for_session(session_id)
    if not username:
        raise HTTPException(
            status_code=HTTPStatus.UNAUTHORIZED, detail="Unknown or missing session."
        )
    return session_id, username


def _render_proxy_response(result: ProxyResponse) -> Response:
    headers = {"Access-Control-Allow-Origin": "*"}
    if isinstance(result.body, (bytes, str)) or result.body is None:
        return Response(
            content=result.body,
            status_code=result.status_code,
            media_type=result.media_type,
            headers=headers,
        )
    return JSONResponse(
        content=result.body, status_code=result.status_code, headers=headers
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> dict:
    """Simple health endpoint for monitoring."""
    return {
        "status": "ok",
        "environment": settings.environment,
        "validateResponse": settings.validation.validate_response,
    }


@router.get("/open-banking/{resource_path:path}")
async def proxy_resource_request(
    resource_path: str,
    request: Request,
    proxy: Annotated[Any, Depends(get_request_proxy)],
) -> Response:
    """Forward a resource request to the ASPSP named in the request headers."""
    result = await proxy.handle(f"/{resource_path}", request.headers)
    return _render_proxy_response(result)


@router.post("/account-requests", status_code=HTTPStatus.CREATED)
async def register_account_request(
    payload: AccountRequestRegistration,
    request: Request,
    sessions: Annotated[Any, Depends(get_session_store)],
    service: Annotated[Any, Depends(get_authorisation_service)],
) -> dict:
    """Remember an account request created at an ASPSP for the session user."""
    _, username = await _session_user(request, sessions)
    record = await service.register_account_request(
        username=username,
        authorisation_server_id=payload.authorisation_server_id,
        scope=payload.scope,
        account_request_id=payload.account_request_id,
        permissions=payload.permissions,
        expiration_date_time=payload.expiration_date_time,
    )
    return {"id": record["id"]}


@router.post("/tpp/authorized")
async def authorisation_code_granted(
    payload: AuthorisationCodeGranted,
    request: Request,
    sessions: Annotated[Any, Depends(get_session_store)],
    service: Annotated[Any, Depends(get_authorisation_service)],
) -> Response:
    """Exchange the authorisation code and attach the token to the consent."""
    _, username = await _session_user(request, sessions)
    try:
        await service.authorisation_code_granted(
            username=username,
            authorisation_server_id=payload.authorisation_server_id,
            scope=payload.scope,
            authorisation_code=payload.authorisation_code,
        )
    except AuthorisationServerNotFoundError as exc:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST, content={"message": str(exc)}
        )
    except TokenIssuerError as exc:
        status = exc.status_code or HTTPStatus.INTERNAL_SERVER_ERROR
        return JSONResponse(status_code=status, content={"message": str(exc)})
    return Response(status_code=HTTPStatus.NO_CONTENT)


@router.get("/consents", response_model=ConsentedServersResponse)
async def list_consented_servers(
    request: Request,
    sessions: Annotated[Any, Depends(get_session_store)],
    aggregator: Annotated[Any, Depends(get_consent_status_aggregator)],
    directory: Annotated[Any, Depends(get_authorisation_server_directory)],
    scope: str = Query("accounts", description="Consent scope to check."),
    authorisation_server_ids: Optional[List[str]] = Query(
        None,
        alias="authorisationServerIds",
        description="Candidate servers; defaults to every configured server.",
    ),
) -> ConsentedServersResponse:
    """List the candidate authorisation servers the user has authorised."""
    session_id, username = await _session_user(request, sessions)
    candidates = authorisation_server_ids or directory.ids()
    consented = await aggregator.filter_consented(username, scope, session_id, candidates)
    return ConsentedServersResponse(consented=consented)


@router.get(
    "/account-requests/{account_request_id}/status",
    response_model=ConsentStatusResponse,
)
async def account_request_status(
    account_request_id: str,
    request: Request,
    aggregator: Annotated[Any, Depends(get_consent_status_aggregator)],
) -> Any:
    """Return the live status of one account request at its ASPSP."""
    authorisation_server_id = request.headers.get(AUTHORISATION_SERVER_HEADER)
    try:
        status = await aggregator.get_consent_status(
            account_request_id,
            authorisation_server_id,
            request.headers.get(SESSION_HEADER),
        )
    except AuthorisationServerNotFoundError as exc:
        return JSONResponse(
            status_code=HTTPStatus.BAD_REQUEST, content={"message": str(exc)}
        )
    except Exception as exc:  # noqa: BLE001
        logger.error("Status check for %s failed: %s", account_request_id, exc)
        return JSONResponse(
            status_code=HTTPStatus.BAD_GATEWAY, content={"message": str(exc)}
        )
    return ConsentStatusResponse(status=status)


@router.delete(
    "/consents/{authorisation_server_id}", status_code=HTTPStatus.NO_CONTENT
)
async def delete_consent(
    authorisation_server_id: str,
    request: Request,
    sessions: Annotated[Any, Depends(get_session_store)],
    consent_store: Annotated[Any, Depends(get_consent_store)],
    scope: str = Query("accounts", description="Consent scope to delete."),
) -> Response:
    """Forget the session user's consent for one server and scope."""
    _, username = await _session_user(request, sessions)
    await consent_store.delete(ConsentKeys(username, authorisation_server_id, scope))
    return Response(status_code=HTTPStatus.NO_CONTENT)


__all__ = ["router"]
