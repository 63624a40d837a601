"""
Configuration Schemas for wabridge.

Pydantic models for settings read from the environment.

Security:
    Sensitive fields use SecretStr to prevent accidental logging
    of credentials. Access the value with `.get_secret_value()`.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, Field, SecretStr, field_validator

POSTGRES_SCHEMES = ("postgres", "postgresql")


def with_default_sslmode(url: str) -> str:
    """Add sslmode=disable to a Postgres URL that does not set sslmode."""
    parts = urlsplit(url)
    if parts.scheme not in POSTGRES_SCHEMES:
        return url
    query = parse_qsl(parts.query, keep_blank_values=True)
    if any(key == "sslmode" for key, _ in query):
        return url
    query.append(("sslmode", "disable"))
    return urlunsplit(parts._replace(query=urlencode(query)))


class AppSettings(BaseModel):
    """
    Application settings model.

    Built once by wabridge.app.dependencies.get_settings() from
    WABRIDGE_* environment variables.
    """

    # Service identity
    service_name: str = "wabridge"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # HTTP facade
    host: str = "0.0.0.0"
    port: int = Field(8080, ge=1, le=65535)

    # Protocol client ("module:callable")
    client_factory: str = Field(default="", description="Factory building the protocol client")
    database_url: SecretStr = Field(
        default=SecretStr(""), description="Device store connection URL, passed to the client factory"
    )

    # Inbound relay
    webhook_url: str = Field(default="", description="Destination for inbound message notifications")
    webhook_timeout_seconds: float = Field(10.0, gt=0)
    downloads_dir: Path = Field(default=Path("downloads"), description="Where retrieved images are stored")

    # Pairing
    pairing_timeout_seconds: float = Field(15.0, gt=0)
    pairing_settle_seconds: float = Field(2.0, ge=0)

    # Outbound
    fetch_timeout_seconds: float = Field(30.0, gt=0)
    jpeg_quality: int = Field(85, ge=1, le=100)
    typing_indicator: bool = True

    # Shutdown
    shutdown_grace_seconds: float = Field(5.0, ge=0)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("database_url", mode="before")
    @classmethod
    def _default_sslmode(cls, value: str | SecretStr) -> str:
        raw = value.get_secret_value() if isinstance(value, SecretStr) else value
        return with_default_sslmode(raw) if raw else raw

    @property
    def webhook_configured(self) -> bool:
        return bool(self.webhook_url)
