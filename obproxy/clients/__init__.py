"""Expose constructed client wrappers."""

from .audit_stream import AuditStreamClient
from .authorisation_servers import (
    AuthorisationServerDirectory,
    AuthorisationServerNotFoundError,
)
from .dynamodb import DynamoDBClient
from .resource_server import (
    RequestIdentity,
    ResourceServerClient,
    UpstreamResponseError,
    UpstreamTransportError,
)
from .sqlite_store import SQLiteStore
from .token_issuer import TokenIssuerClient, TokenIssuerError

__all__ = [
    "AuditStreamClient",
    "AuthorisationServerDirectory",
    "AuthorisationServerNotFoundError",
    "DynamoDBClient",
    "RequestIdentity",
    "ResourceServerClient",
    "SQLiteStore",
    "TokenIssuerClient",
    "TokenIssuerError",
    "UpstreamResponseError",
    "UpstreamTransportError",
]
