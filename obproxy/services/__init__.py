"""Service layer exports."""

from .authorisation import AuthorisationService
from .consent_resolver import ConsentResolver, ResolvedCredentials
from .consent_status import (
    AUTHORISED_STATUS,
    ConsentStatusAggregator,
    ConsentStatusError,
)
from .consent_store import ConsentKeys, ConsentStore
from .request_headers import RequestHeaders, extract_headers
from .request_proxy import ProxyResponse, RequestProxy, scope_and_url
from .sessions import SessionStore
from .setup_request import SetupRequestService
from .validation import ResponseValidator, ValidationContext

__all__ = [
    "AUTHORISED_STATUS",
    "AuthorisationService",
    "ConsentKeys",
    "ConsentResolver",
    "ConsentStatusAggregator",
    "ConsentStatusError",
    "ConsentStore",
    "ProxyResponse",
    "RequestHeaders",
    "RequestProxy",
    "ResolvedCredentials",
    "ResponseValidator",
    "SessionStore",
    "SetupRequestService",
    "ValidationContext",
    "extract_headers",
    "scope_and_url",
]
