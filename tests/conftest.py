"""Pytest configuration shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from keyrelay.clients.identity import SessionTokenSigner
from keyrelay.clients.secret_store import SecretStore
from keyrelay.services.secret_cipher import SecretCipher


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def cipher() -> SecretCipher:
    return SecretCipher(secret="test-encryption-key")


@pytest.fixture
def store(tmp_path, cipher) -> SecretStore:
    return SecretStore(str(tmp_path / "keys.db"), cipher=cipher)


@pytest.fixture
def signer() -> SessionTokenSigner:
    return SessionTokenSigner("test-signing-secret", ttl_seconds=300)
