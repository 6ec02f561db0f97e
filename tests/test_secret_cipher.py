try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from keyrelay.services.secret_cipher import SecretCipher, mask_secret


def test_secret_cipher_roundtrip() -> None:
    cipher = SecretCipher(secret="super-secret-key")
    plaintext = "sk-live-123456"

    encrypted = cipher.encrypt(plaintext)
    assert encrypted != plaintext
    assert cipher.decrypt(encrypted) == plaintext


def test_secret_cipher_rejects_bad_ciphertext() -> None:
    cipher = SecretCipher(secret="another-secret")

    with pytest.raises(ValueError):
        cipher.decrypt("not-valid")


def test_secret_cipher_rejects_ciphertext_from_other_key() -> None:
    encrypted = SecretCipher(secret="key-one").encrypt("r8_abc")

    with pytest.raises(ValueError):
        SecretCipher(secret="key-two").decrypt(encrypted)


def test_secret_cipher_requires_secret() -> None:
    with pytest.raises(ValueError):
        SecretCipher(secret="")


def test_mask_secret_keeps_prefix_and_suffix() -> None:
    assert mask_secret("sk-proj-abcdefghijkl") == "sk-...ijkl"
    assert mask_secret("short") == "*****"
