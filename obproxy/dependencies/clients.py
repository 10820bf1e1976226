"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from obproxy.clients import (
    AuthorisationServerDirectory,
    DynamoDBClient,
    ResourceServerClient,
    SQLiteStore,
    TokenIssuerClient,
)
from obproxy.core.config import get_settings
from obproxy.services import (
    AuthorisationService,
    ConsentResolver,
    ConsentStatusAggregator,
    ConsentStore,
    RequestProxy,
    SessionStore,
    SetupRequestService,
    ValidationContext,
)
from obproxy.services.consent_store import RecordStore


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_record_store() -> RecordStore:
    """Provide the configured persistence backend."""
    storage = _settings().storage
    if storage.backend == "dynamodb":
        return DynamoDBClient(storage)
    return SQLiteStore(storage.sqlite_path)


@lru_cache()
def get_consent_store() -> ConsentStore:
    return ConsentStore(get_record_store())


@lru_cache()
def get_session_store() -> SessionStore:
    return SessionStore(get_record_store())


@lru_cache()
def get_consent_resolver() -> ConsentResolver:
    return ConsentResolver(get_consent_store())


@lru_cache()
def get_authorisation_server_directory() -> AuthorisationServerDirectory:
    """Provide the ASPSP directory built from configuration."""
    return AuthorisationServerDirectory(_settings().open_banking)


@lru_cache()
def get_resource_server_client() -> ResourceServerClient:
    return ResourceServerClient(
        timeout=_settings().open_banking.outbound_timeout_seconds
    )


@lru_cache()
def get_token_issuer_client() -> TokenIssuerClient:
    return TokenIssuerClient(
        timeout=_settings().open_banking.outbound_timeout_seconds
    )


@lru_cache()
def get_setup_request_service() -> SetupRequestService:
    return SetupRequestService(
        directory=get_authorisation_server_directory(),
        token_issuer=get_token_issuer_client(),
    )


@lru_cache()
def get_consent_status_aggregator() -> ConsentStatusAggregator:
    return ConsentStatusAggregator(
        consent_store=get_consent_store(),
        setup_request=get_setup_request_service(),
        resource_server=get_resource_server_client(),
        directory=get_authorisation_server_directory(),
    )


@lru_cache()
def get_validation_context() -> ValidationContext:
    """Provide the process-wide validation pipeline context."""
    return ValidationContext(_settings().validation)


@lru_cache()
def get_request_proxy() -> RequestProxy:
    return RequestProxy(
        directory=get_authorisation_server_directory(),
        sessions=get_session_store(),
        resolver=get_consent_resolver(),
        resource_server=get_resource_server_client(),
        validation=get_validation_context(),
    )


@lru_cache()
def get_authorisation_service() -> AuthorisationService:
    settings = _settings()
    return AuthorisationService(
        consent_store=get_consent_store(),
        directory=get_authorisation_server_directory(),
        token_issuer=get_token_issuer_client(),
        redirect_url=settings.open_banking.redirect_url,
    )


__all__ = [
    "get_authorisation_server_directory",
    "get_authorisation_service",
    "get_consent_resolver",
    "get_consent_status_aggregator",
    "get_consent_store",
    "get_record_store",
    "get_request_proxy",
    "get_resource_server_client",
    "get_session_store",
    "get_setup_request_service",
    "get_token_issuer_client",
    "get_validation_context",
]
