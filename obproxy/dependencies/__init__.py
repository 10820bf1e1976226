"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_authorisation_server_directory,
    get_authorisation_service,
    get_consent_resolver,
    get_consent_status_aggregator,
    get_consent_store,
    get_record_store,
    get_request_proxy,
    get_resource_server_client,
    get_session_store,
    get_setup_request_service,
    get_token_issuer_client,
    get_validation_context,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
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
