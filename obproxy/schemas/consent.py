"""
Pydantic models for the consent endpoints.

Request bodies use the camelCase field names already sent by TPP front ends.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AccountRequestRegistration(_CamelModel):
    """Account-request grant created at an ASPSP for the session user."""

    authorisation_server_id: str = Field(..., alias="authorisationServerId")
    scope: str = Field(..., description="Consent scope, e.g. accounts.")
    account_request_id: str = Field(..., alias="accountRequestId")
    permissions: Optional[List[str]] = Field(
        None, description="Permission codes requested for the account request."
    )
    expiration_date_time: Optional[str] = Field(None, alias="expirationDateTime")


class AuthorisationCodeGranted(_CamelModel):
    """Payload sent once the user returns from the ASPSP authorisation redirect."""

    authorisation_server_id: str = Field(..., alias="authorisationServerId")
    authorisation_code: str = Field(..., alias="authorisationCode")
    scope: str = Field("accounts")


class ConsentStatusResponse(BaseModel):
    """Live status of a single account request."""

    status: str


class ConsentedServersResponse(BaseModel):
    """Authorisation servers holding an authorised consent for the user."""

    consented: List[str] = Field(default_factory=list)


__all__ = [
    "AccountRequestRegistration",
    "AuthorisationCodeGranted",
    "ConsentStatusResponse",
    "ConsentedServersResponse",
]
