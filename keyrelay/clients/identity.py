"""
Identity verification.

Bearer credentials are resolved to a user id either by a remote
Supabase-compatible auth server or by locally signed session tokens.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import json
import logging
import time
from hashlib import sha256
from typing import Any, Dict, Optional, Protocol

import httpx
from fastapi import status

from keyrelay.core.config import IdentitySettings

logger = logging.getLogger(__name__)


class IdentityVerifier(Protocol):
    async def resolve_user(self, token: str) -> Optional[str]:
        """Return the user id for ``token`` or ``None`` when rejected."""


class SessionTokenSigner:
    """Issue and verify HMAC-signed session tokens carrying a subject and expiry."""

    def __init__(self, secret_key: str, *, ttl_seconds: int = 3600) -> None:
        if not secret_key:
            raise ValueError("Session signing secret must be provided.")
        self._secret_key = secret_key.encode("utf-8")
        self._ttl = ttl_seconds

    def _sign(self, serialized: bytes) -> bytes:
        return hmac.new(self._secret_key, serialized, sha256).digest()

    def issue(self, user_id: str, *, ttl_seconds: int | None = None) -> str:
        payload = {
            "sub": user_id,
            "exp": int(time.time()) + (ttl_seconds or self._ttl),
        }
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        encoded = serialized.encode("utf-8")
        return base64.urlsafe_b64encode(self._sign(encoded) + encoded).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise ValueError("Malformed session token.") from exc
        signature, serialized = decoded[:32], decoded[32:]
        if not hmac.compare_digest(signature, self._sign(serialized)):
            raise ValueError("Invalid session token signature.")
        try:
            return json.loads(serialized)
        except ValueError as exc:
            raise ValueError("Malformed session token payload.") from exc

    async def resolve_user(self, token: str) -> Optional[str]:
        try:
            payload = self.decode(token)
        except ValueError as exc:
            logger.info("Rejected session token: %s", exc)
            return None
        if int(payload.get("exp", 0)) <= int(time.time()):
            logger.info("Rejected expired session token.")
            return None
        user_id = payload.get("sub")
        return str(user_id) if user_id else None


class SupabaseIdentityVerifier:
    """Resolve access tokens through the ``/auth/v1/user`` endpoint."""

    USER_PATH = "/auth/v1/user"

    def __init__(
        self,
        identity_settings: IdentitySettings,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not identity_settings.remote_enabled:
            raise ValueError("Supabase URL and service role key must be configured.")
        self._base_url = str(identity_settings.supabase_url).rstrip("/")
        self._api_key = identity_settings.supabase_service_role_key
        self._timeout = timeout
        self._transport = transport

    async def resolve_user(self, token: str) -> Optional[str]:
        headers = {
            "Authorization": f"Bearer {token}",
            "apikey": self._api_key,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(
                    f"{self._base_url}{self.USER_PATH}", headers=headers
                )
        except httpx.HTTPError as exc:
            logger.error("User validation error: %s", exc.__class__.__name__)
            return None

        if response.status_code != status.HTTP_200_OK:
            logger.info("Identity provider rejected token (%s).", response.status_code)
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.error("Identity provider returned a non-JSON user payload.")
            return None
        user_id = payload.get("id") if isinstance(payload, dict) else None
        return str(user_id) if user_id else None


__all__ = ["IdentityVerifier", "SessionTokenSigner", "SupabaseIdentityVerifier"]
