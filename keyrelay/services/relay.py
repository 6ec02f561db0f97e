"""
Credential-gated relay to third-party AI providers.

A request is authenticated, matched to a registry descriptor, paired with the
caller's stored key and forwarded. The provider's status and body come back
untouched; only failures that happen before or instead of the upstream call
are reported as local errors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from keyrelay.clients.identity import IdentityVerifier
from keyrelay.clients.secret_store import SecretStore, SecretStoreError
from keyrelay.core.errors import AuthInvalid, AuthRequired, SecretMissing, UpstreamUnavailable
from keyrelay.services.registry import OutboundRequest, ServiceRegistry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RelayResult:
    """Upstream response as returned to the caller.

    ``body`` holds the decoded JSON document. Non-JSON upstream bodies are kept
    as raw ``content`` together with the upstream ``media_type``.
    """

    status_code: int
    body: Any = None
    content: Optional[bytes] = None
    media_type: Optional[str] = None

    @property
    def is_json(self) -> bool:
        return self.content is None


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an ``Authorization`` header value."""
    if not authorization or not authorization.strip():
        raise AuthRequired()
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthInvalid()
    return token.strip()


class RelayHandler:
    """Stateless relay; every collaborator is injected."""

    def __init__(
        self,
        *,
        registry: ServiceRegistry,
        identity_verifier: IdentityVerifier,
        secret_store: SecretStore,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._registry = registry
        self._identity = identity_verifier
        self._store = secret_store
        self._timeout = timeout
        self._transport = transport

    async def authenticate(self, authorization: str | None) -> str:
        """Resolve the caller's user id or raise an auth error."""
        token = extract_bearer_token(authorization)
        user_id = await self._identity.resolve_user(token)
        if not user_id:
            raise AuthInvalid()
        return user_id

    async def handle(
        self,
        *,
        authorization: str | None,
        service: str,
        endpoint: str,
        payload: Any = None,
    ) -> RelayResult:
        user_id = await self.authenticate(authorization)
        return await self.relay(
            user_id=user_id, service=service, endpoint=endpoint, payload=payload
        )

    async def relay(
        self,
        *,
        user_id: str,
        service: str,
        endpoint: str,
        payload: Any = None,
    ) -> RelayResult:
        """Forward a call for an already authenticated user."""
        descriptor = self._registry.resolve(service)
        secret = self._lookup_secret(user_id=user_id, service=descriptor.key)

        outbound = descriptor.build_request(
            endpoint=endpoint, secret=secret, payload=payload
        )
        logger.info("Making request to %s", outbound.url)
        response = await self._send(outbound, service=descriptor.key)
        return self._to_result(response)

    def _lookup_secret(self, *, user_id: str, service: str) -> str:
        try:
            stored = self._store.get_secret(user_id=user_id, service=service)
        except (SecretStoreError, ValueError) as exc:
            logger.error("API key retrieval error for %s: %s", service, exc)
            raise SecretMissing() from exc
        if stored is None:
            raise SecretMissing()
        return stored.value

    async def _send(self, outbound: OutboundRequest, *, service: str) -> httpx.Response:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                return await client.request(
                    outbound.method,
                    outbound.url,
                    headers=outbound.headers,
                    params=outbound.params or None,
                    json=outbound.json,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            # Exception text can embed the full URL, which may carry the key.
            failure = exc.__class__.__name__
            logger.error("Upstream request to %s failed: %s", service, failure)
            raise UpstreamUnavailable(
                f"Upstream request to {service} failed: {failure}"
            ) from exc

    @staticmethod
    def _to_result(response: httpx.Response) -> RelayResult:
        try:
            body = response.json()
        except ValueError:
            return RelayResult(
                status_code=response.status_code,
                content=response.content,
                media_type=response.headers.get("content-type"),
            )
        return RelayResult(status_code=response.status_code, body=body)


__all__ = ["RelayHandler", "RelayResult", "extract_bearer_token"]
