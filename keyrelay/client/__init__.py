"""Python client for the key relay: key management and gated relay calls."""

from .api import RelayApiClient
from .errors import (
    AuthenticationRequired,
    KeyStoreError,
    RelayCallError,
    RelayClientError,
    SecretRequiredError,
)
from .gate import CallGate, GatedRelayCaller
from .secrets import SecretManager

__all__ = [
    "AuthenticationRequired",
    "CallGate",
    "GatedRelayCaller",
    "KeyStoreError",
    "RelayApiClient",
    "RelayCallError",
    "RelayClientError",
    "SecretManager",
    "SecretRequiredError",
]
