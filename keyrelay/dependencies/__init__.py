"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_current_user_id,
    get_identity_verifier,
    get_relay_handler,
    get_secret_cipher,
    get_secret_store,
    get_service_registry,
    get_session_signer,
    get_upstream_transport,
)
from .config import get_app_settings

__all__ = [
    "get_app_settings",
    "get_current_user_id",
    "get_identity_verifier",
    "get_relay_handler",
    "get_secret_cipher",
    "get_secret_store",
    "get_service_registry",
    "get_session_signer",
    "get_upstream_transport",
]
