"""Exceptions raised by the relay client."""

from __future__ import annotations

from typing import Any, Optional


class RelayClientError(Exception):
    """Base class for client-side failures."""


class AuthenticationRequired(RelayClientError):
    """No session token is available; the user must sign in."""

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class KeyStoreError(RelayClientError):
    """A key management request failed."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RelayCallError(RelayClientError):
    """The relay answered with a non-2xx status or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class SecretRequiredError(RelayClientError):
    """Raised by the call gate when no key is registered for the service.

    This is not an API failure and is never reported through error hooks.
    """

    def __init__(self, service: str) -> None:
        super().__init__(f"{service} API key is required")
        self.service = service


__all__ = [
    "AuthenticationRequired",
    "KeyStoreError",
    "RelayCallError",
    "RelayClientError",
    "SecretRequiredError",
]
