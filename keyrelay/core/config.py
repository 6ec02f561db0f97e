"""
Application configuration models and helpers.

Centralizes settings management so the relay API, the helper scripts and the
Python client share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class SecuritySettings(BaseSettings):
    """Secrets protecting stored provider keys and local session tokens."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    secret_encryption_key: str = Field(
        ...,
        alias="SECRET_ENCRYPTION_KEY",
        description="Secret used to derive the symmetric key for stored API keys.",
    )
    session_signing_secret: Optional[str] = Field(
        None,
        alias="SESSION_SIGNING_SECRET",
        description=(
            "Secret used to sign local session tokens. Falls back to the "
            "encryption key when omitted."
        ),
    )
    session_ttl_seconds: int = Field(3600, alias="SESSION_TTL")


class IdentitySettings(BaseSettings):
    """Remote identity provider configuration (Supabase-compatible auth)."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    supabase_url: Optional[AnyHttpUrl] = Field(
        None,
        alias="SUPABASE_URL",
        description="When set, bearer tokens are verified against this provider.",
    )
    supabase_service_role_key: Optional[str] = Field(
        None, alias="SUPABASE_SERVICE_ROLE_KEY"
    )

    @property
    def remote_enabled(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_role_key)


class RelaySettings(BaseSettings):
    """Outbound relay behaviour."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    upstream_timeout_seconds: float = Field(60.0, alias="RELAY_UPSTREAM_TIMEOUT")
    azure_speech_region: str = Field("eastus", alias="AZURE_SPEECH_REGION")


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    db_path: str = Field("data/keyrelay.db", alias="KEYRELAY_DB_PATH")
    cors_allow_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        ("*",), alias="CORS_ALLOW_ORIGINS"
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    relay: RelaySettings = Field(default_factory=RelaySettings)

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def _split_origins(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing origins as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(origin.strip() for origin in value.split(",") if origin.strip())


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "IdentitySettings",
    "RelaySettings",
    "SecuritySettings",
    "get_settings",
]
