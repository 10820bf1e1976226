"""
Live consent status checks across authorisation servers.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Callable, List, Sequence

from obproxy.clients import (
    AuthorisationServerDirectory,
    RequestIdentity,
    ResourceServerClient,
)
from obproxy.services.consent_store import ConsentKeys, ConsentStore
from obproxy.services.setup_request import SetupRequestService

logger = logging.getLogger(__name__)

AUTHORISED_STATUS = "Authorised"


class ConsentStatusError(Exception):
    """Raised when an account-request payload carries no status."""


def _default_interaction_id() -> str:
    return str(uuid.uuid4())


class ConsentStatusAggregator:
    """Determine which authorisation servers hold an authorised consent."""

    def __init__(
        self,
        consent_store: ConsentStore,
        setup_request: SetupRequestService,
        resource_server: ResourceServerClient,
        directory: AuthorisationServerDirectory,
        interaction_id_factory: Callable[[], str] = _default_interaction_id,
    ) -> None:
        self._consents = consent_store
        self._setup_request = setup_request
        self._resource_server = resource_server
        self._directory = directory
        self._interaction_id = interaction_id_factory

    async def get_consent_status(
        self,
        account_request_id: str,
        authorisation_server_id: str,
        session_id: str | None,
    ) -> str:
        """Fetch the account request from the resource server and return its status."""
        access_token, resource_path = await self._setup_request.access_token_and_resource_path(
            authorisation_server_id
        )
        identity = RequestIdentity(
            access_token=access_token,
            fapi_financial_id=await self._directory.fapi_financial_id(authorisation_server_id),
            interaction_id=self._interaction_id(),
            session_id=session_id,
            authorisation_server_id=authorisation_server_id,
        )
        payload = await self._resource_server.get_account_request(
            account_request_id, resource_path, identity
        )
        return self._status_from_payload(payload, account_request_id)

    @staticmethod
    def _status_from_payload(payload: Any, account_request_id: str) -> str:
        if not isinstance(payload, dict):
            raise ConsentStatusError(
                f"No account request payload returned for {account_request_id}."
            )
        data = payload.get("Data")
        status = data.get("Status") if isinstance(data, dict) else None
        if not status:
            raise ConsentStatusError(
                f"Account request {account_request_id} payload has no Data.Status."
            )
        return status

    async def _is_consented(
        self,
        username: str,
        scope: str,
        session_id: str | None,
        authorisation_server_id: str,
    ) -> bool:
        keys = ConsentKeys(username, authorisation_server_id, scope)
        try:
            consent = await self._consents.get(keys)
            if not consent or not consent.get("authorisationCode"):
                return False
            status = await self.get_consent_status(
                consent.get("accountRequestId"), authorisation_server_id, session_id
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Excluding %s from consented servers: %s", authorisation_server_id, exc
            )
            return False
        return status == AUTHORISED_STATUS

    async def filter_consented(
        self,
        username: str,
        scope: str,
        session_id: str | None,
        authorisation_server_ids: Sequence[str],
    ) -> List[str]:
        """Return the candidate ids with an authorised consent, in input order."""
        results = await asyncio.gather(
            *(
                self._is_consented(username, scope, session_id, server_id)
                for server_id in authorisation_server_ids
            )
        )
        return [
            server_id
            for server_id, consented in zip(authorisation_server_ids, results)
            if consented
        ]


__all__ = ["AUTHORISED_STATUS", "ConsentStatusAggregator", "ConsentStatusError"]
