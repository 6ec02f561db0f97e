"""Public schema exports."""

from .keys import ApiKeyCreate, ApiKeySummary, ApiKeyUpdate, ServiceList
from .relay import ErrorResponse, RelayRequest

__all__ = [
    "ApiKeyCreate",
    "ApiKeySummary",
    "ApiKeyUpdate",
    "ErrorResponse",
    "RelayRequest",
    "ServiceList",
]
