from __future__ import annotations

import base64
import json

import httpx
import pytest

from keyrelay.clients.identity import SessionTokenSigner, SupabaseIdentityVerifier
from keyrelay.core.config import IdentitySettings


@pytest.mark.asyncio
async def test_session_token_resolves_subject(signer) -> None:
    token = signer.issue("user-42")

    assert await signer.resolve_user(token) == "user-42"


@pytest.mark.asyncio
async def test_session_token_expired_is_rejected(signer) -> None:
    token = signer.issue("user-42", ttl_seconds=-10)

    assert await signer.resolve_user(token) is None


@pytest.mark.asyncio
async def test_session_token_signed_with_other_secret_is_rejected(signer) -> None:
    foreign = SessionTokenSigner("someone-else").issue("user-42")

    assert await signer.resolve_user(foreign) is None


@pytest.mark.asyncio
async def test_tampered_session_token_is_rejected(signer) -> None:
    decoded = base64.urlsafe_b64decode(signer.issue("user-42"))
    forged_payload = json.dumps({"sub": "admin", "exp": 9999999999}).encode("utf-8")
    forged = base64.urlsafe_b64encode(decoded[:32] + forged_payload).decode("utf-8")

    assert await signer.resolve_user(forged) is None
    assert await signer.resolve_user("!!not-base64!!") is None


def _identity_settings() -> IdentitySettings:
    return IdentitySettings(
        SUPABASE_URL="https://project.supabase.test",
        SUPABASE_SERVICE_ROLE_KEY="service-role",
    )


@pytest.mark.asyncio
async def test_supabase_verifier_returns_user_id() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "uuid-1", "email": "a@b.test"})

    verifier = SupabaseIdentityVerifier(
        _identity_settings(), transport=httpx.MockTransport(handler)
    )

    assert await verifier.resolve_user("jwt-token") == "uuid-1"
    assert str(seen[0].url) == "https://project.supabase.test/auth/v1/user"
    assert seen[0].headers["authorization"] == "Bearer jwt-token"
    assert seen[0].headers["apikey"] == "service-role"


@pytest.mark.asyncio
async def test_supabase_verifier_rejects_on_401() -> None:
    verifier = SupabaseIdentityVerifier(
        _identity_settings(),
        transport=httpx.MockTransport(
            lambda request: httpx.Response(401, json={"msg": "invalid JWT"})
        ),
    )

    assert await verifier.resolve_user("expired") is None


@pytest.mark.asyncio
async def test_supabase_verifier_rejects_on_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    verifier = SupabaseIdentityVerifier(
        _identity_settings(), transport=httpx.MockTransport(handler)
    )

    assert await verifier.resolve_user("jwt-token") is None


def test_supabase_verifier_requires_configuration() -> None:
    with pytest.raises(ValueError):
        SupabaseIdentityVerifier(IdentitySettings())
