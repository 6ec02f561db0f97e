"""Expose constructed client wrappers."""

from .identity import IdentityVerifier, SessionTokenSigner, SupabaseIdentityVerifier
from .secret_store import SecretStore, SecretStoreError, StoredSecret

__all__ = [
    "IdentityVerifier",
    "SecretStore",
    "SecretStoreError",
    "SessionTokenSigner",
    "StoredSecret",
    "SupabaseIdentityVerifier",
]
