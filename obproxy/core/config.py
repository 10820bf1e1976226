"""
Application configuration models and helpers.

Centralizes settings management so the proxy routes, the consent services and
the validation pipeline share a single configuration surface resolved once per
process.
"""

from functools import lru_cache
from typing import Dict, Literal, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class AuthorisationServerConfig(BaseModel):
    """Directory entry describing a single ASPSP authorisation server."""

    resource_server_host: str = Field(
        ..., description="Base URL of the ASPSP resource server."
    )
    fapi_financial_id: str = Field(
        ..., description="Value sent in the x-fapi-financial-id header."
    )
    auth_server_host: Optional[str] = Field(
        None, description="Base URL of the ASPSP token endpoint."
    )
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @field_validator("resource_server_host", "auth_server_host")
    @classmethod
    def _strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return value.rstrip("/")


class StorageSettings(BaseSettings):
    """Where consent records and sessions are persisted."""

    model_config = _ENV_CONFIG

    backend: Literal["sqlite", "dynamodb"] = Field(
        "sqlite", validation_alias=AliasChoices("STORAGE_BACKEND", "backend")
    )
    sqlite_path: str = Field(
        "data/consents.db",
        validation_alias=AliasChoices("SQLITE_DB_PATH", "sqlite_path"),
    )
    dynamodb_table_name: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("DYNAMODB_TABLE_NAME", "dynamodb_table_name"),
    )
    region_name: str = Field(
        "us-east-1", validation_alias=AliasChoices("AWS_REGION", "region_name")
    )


class ValidationSettings(BaseSettings):
    """Toggles for the response validation pipeline and its audit stream."""

    model_config = _ENV_CONFIG

    validate_response: bool = Field(
        False,
        validation_alias=AliasChoices("VALIDATE_RESPONSE", "validate_response"),
    )
    audit_queue_name: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("VALIDATION_AUDIT_QUEUE", "audit_queue_name"),
        description="Queue receiving validation reports.",
    )
    audit_endpoint_url: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "VALIDATION_AUDIT_ENDPOINT", "audit_endpoint_url"
        ),
        description="Endpoint of the SQS-compatible broker hosting the queue.",
    )
    region_name: str = Field(
        "us-east-1", validation_alias=AliasChoices("AWS_REGION", "region_name")
    )

    @property
    def audit_stream_configured(self) -> bool:
        return bool(self.audit_queue_name and self.audit_endpoint_url)


class OpenBankingSettings(BaseSettings):
    """Authorisation server directory and outbound call configuration."""

    model_config = _ENV_CONFIG

    authorisation_servers: Dict[str, AuthorisationServerConfig] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("ASPSP_DIRECTORY", "authorisation_servers"),
    )
    redirect_url: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "SOFTWARE_STATEMENT_REDIRECT_URL", "redirect_url"
        ),
    )
    api_version: str = Field(
        "v1.1", validation_alias=AliasChoices("OB_API_VERSION", "api_version")
    )
    outbound_timeout_seconds: float = Field(
        10.0,
        validation_alias=AliasChoices(
            "OUTBOUND_TIMEOUT_SECONDS", "outbound_timeout_seconds"
        ),
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = _ENV_CONFIG

    environment: str = Field(
        "development", validation_alias=AliasChoices("APP_ENV", "environment")
    )
    log_level: str = Field(
        "INFO", validation_alias=AliasChoices("APP_LOG_LEVEL", "log_level")
    )
    storage: StorageSettings = Field(default_factory=StorageSettings)
    validation: ValidationSettings = Field(default_factory=ValidationSettings)
    open_banking: OpenBankingSettings = Field(default_factory=OpenBankingSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "AuthorisationServerConfig",
    "OpenBankingSettings",
    "StorageSettings",
    "ValidationSettings",
    "get_settings",
]
