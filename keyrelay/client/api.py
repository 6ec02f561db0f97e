"""
HTTP client for the relay API.

Wraps the key management endpoints and the relay endpoint behind one object
holding the caller's session token.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx

from keyrelay.client.errors import AuthenticationRequired, KeyStoreError, RelayCallError
from keyrelay.schemas import ApiKeySummary

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        # Provider style: {"error": {"message": ...}}
        error = error.get("message")
    if error:
        return str(error)
    return fallback


class RelayApiClient:
    """Async client for ``/api/keys`` and ``/api/relay``."""

    def __init__(
        self,
        base_url: str,
        *,
        session_token: Optional[str] = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session_token = session_token
        self._timeout = timeout
        self._transport = transport

    @property
    def signed_in(self) -> bool:
        return bool(self._session_token)

    def set_session_token(self, token: Optional[str]) -> None:
        self._session_token = token

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        if not self._session_token:
            raise AuthenticationRequired()
        headers = {"Authorization": f"Bearer {self._session_token}"}
        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport
        ) as client:
            return await client.request(method, path, headers=headers, **kwargs)

    async def _key_request(
        self, method: str, path: str, failure: str, **kwargs: Any
    ) -> httpx.Response:
        try:
            response = await self._request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("Key request %s %s failed: %s", method, path, exc)
            raise KeyStoreError(failure) from exc
        if response.is_error:
            raise KeyStoreError(
                _error_message(response, failure), status_code=response.status_code
            )
        return response

    async def list_keys(self) -> List[ApiKeySummary]:
        response = await self._key_request("GET", "/api/keys", "Failed to load API keys")
        return [ApiKeySummary.model_validate(item) for item in response.json()]

    async def insert_key(self, service: str, api_key: str) -> ApiKeySummary:
        response = await self._key_request(
            "POST",
            "/api/keys",
            "Failed to save API key",
            json={"service": service, "api_key": api_key},
        )
        return ApiKeySummary.model_validate(response.json())

    async def update_key(self, key_id: str, api_key: str) -> ApiKeySummary:
        response = await self._key_request(
            "PATCH",
            f"/api/keys/{key_id}",
            "Failed to save API key",
            json={"api_key": api_key},
        )
        return ApiKeySummary.model_validate(response.json())

    async def delete_key(self, key_id: str) -> None:
        await self._key_request(
            "DELETE", f"/api/keys/{key_id}", "Failed to delete API key"
        )

    async def call_relay(self, *, service: str, endpoint: str, payload: Any = None) -> Any:
        """Invoke a provider through the relay and return its decoded body."""
        try:
            response = await self._request(
                "POST",
                "/api/relay",
                json={"service": service, "endpoint": endpoint, "payload": payload},
            )
        except httpx.HTTPError as exc:
            logger.error("API call error: %s", exc)
            raise RelayCallError("Failed to call API") from exc

        try:
            body: Any = response.json()
        except ValueError:
            body = response.content

        if response.is_error:
            raise RelayCallError(
                _error_message(
                    response, f"Relay returned {response.status_code} {response.reason_phrase}"
                ),
                status_code=response.status_code,
                body=body,
            )
        return body


__all__ = ["RelayApiClient"]
