"""Public schema exports."""

from .consent import (
    AccountRequestRegistration,
    AuthorisationCodeGranted,
    ConsentStatusResponse,
    ConsentedServersResponse,
)

__all__ = [
    "AccountRequestRegistration",
    "AuthorisationCodeGranted",
    "ConsentStatusResponse",
    "ConsentedServersResponse",
]
