"""Service layer exports."""

from .registry import (
    HeaderAuth,
    OutboundRequest,
    QueryAuth,
    ServiceDescriptor,
    ServiceRegistry,
    build_default_registry,
)
from .relay import RelayHandler, RelayResult, extract_bearer_token
from .secret_cipher import SecretCipher, mask_secret

__all__ = [
    "HeaderAuth",
    "OutboundRequest",
    "QueryAuth",
    "RelayHandler",
    "RelayResult",
    "SecretCipher",
    "ServiceDescriptor",
    "ServiceRegistry",
    "build_default_registry",
    "extract_bearer_token",
    "mask_secret",
]
