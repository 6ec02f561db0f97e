"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache
from typing import Annotated, Any

import httpx
from fastapi import Depends, Header

from keyrelay.clients import (
    IdentityVerifier,
    SecretStore,
    SessionTokenSigner,
    SupabaseIdentityVerifier,
)
from keyrelay.core.config import AppSettings
from keyrelay.core.errors import AuthInvalid
from keyrelay.dependencies.config import get_app_settings
from keyrelay.services import (
    RelayHandler,
    SecretCipher,
    ServiceRegistry,
    build_default_registry,
    extract_bearer_token,
)


@lru_cache()
def get_secret_cipher() -> SecretCipher:
    """Provide symmetric encryption helper for stored keys."""
    settings = get_app_settings()
    return SecretCipher(secret=settings.security.secret_encryption_key)


@lru_cache()
def get_secret_store() -> SecretStore:
    """Provide the shared provider key store."""
    settings = get_app_settings()
    return SecretStore(settings.db_path, cipher=get_secret_cipher())


@lru_cache()
def get_service_registry() -> ServiceRegistry:
    """Build the provider table once per process."""
    settings = get_app_settings()
    return build_default_registry(azure_region=settings.relay.azure_speech_region)


@lru_cache()
def get_session_signer() -> SessionTokenSigner:
    """Provide the signer for locally issued session tokens."""
    security = get_app_settings().security
    secret = security.session_signing_secret or security.secret_encryption_key
    return SessionTokenSigner(secret, ttl_seconds=security.session_ttl_seconds)


@lru_cache()
def get_identity_verifier() -> IdentityVerifier:
    """Use the remote identity provider when configured, local tokens otherwise."""
    settings = get_app_settings()
    if settings.identity.remote_enabled:
        return SupabaseIdentityVerifier(settings.identity)
    return get_session_signer()


def get_upstream_transport() -> httpx.AsyncBaseTransport | None:
    """Transport for provider calls; ``None`` selects httpx's default."""
    return None


def get_relay_handler(
    registry: Annotated[Any, Depends(get_service_registry)],
    identity_verifier: Annotated[Any, Depends(get_identity_verifier)],
    secret_store: Annotated[Any, Depends(get_secret_store)],
    transport: Annotated[Any, Depends(get_upstream_transport)],
    settings: Annotated[AppSettings, Depends(get_app_settings)],
) -> RelayHandler:
    """Build a relay handler from the shared collaborators."""
    return RelayHandler(
        registry=registry,
        identity_verifier=identity_verifier,
        secret_store=secret_store,
        timeout=settings.relay.upstream_timeout_seconds,
        transport=transport,
    )


async def get_current_user_id(
    identity_verifier: Annotated[Any, Depends(get_identity_verifier)],
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Resolve the bearer token on the request to a user id."""
    token = extract_bearer_token(authorization)
    user_id = await identity_verifier.resolve_user(token)
    if not user_id:
        raise AuthInvalid()
    return user_id


__all__ = [
    "get_current_user_id",
    "get_identity_verifier",
    "get_relay_handler",
    "get_secret_cipher",
    "get_secret_store",
    "get_service_registry",
    "get_session_signer",
    "get_upstream_transport",
]
