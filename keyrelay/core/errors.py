"""
Error taxonomy for the relay.

Each error carries the HTTP status and the public message rendered to the
caller as ``{"error": message}``. Messages never include secret values.
"""

from __future__ import annotations

from http import HTTPStatus


class RelayError(Exception):
    """Base class for locally generated relay errors."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class AuthRequired(RelayError):
    """No bearer credential was supplied."""

    status_code = HTTPStatus.UNAUTHORIZED
    message = "No authorization header"


class AuthInvalid(RelayError):
    """The identity verifier rejected the supplied credential."""

    status_code = HTTPStatus.UNAUTHORIZED
    message = "Unauthorized"


class UnknownService(RelayError):
    status_code = HTTPStatus.BAD_REQUEST
    message = "Invalid service"


class InvalidRequest(RelayError):
    status_code = HTTPStatus.BAD_REQUEST
    message = "Invalid request body"


class SecretMissing(RelayError):
    """No stored secret for the (user, service) pair, or the row is not owned."""

    status_code = HTTPStatus.NOT_FOUND
    message = "API key not found"


class UpstreamUnavailable(RelayError):
    """The provider could not be reached (DNS, connect, timeout, protocol)."""

    status_code = HTTPStatus.INTERNAL_SERVER_ERROR


__all__ = [
    "AuthInvalid",
    "AuthRequired",
    "InvalidRequest",
    "RelayError",
    "SecretMissing",
    "UnknownService",
    "UpstreamUnavailable",
]
