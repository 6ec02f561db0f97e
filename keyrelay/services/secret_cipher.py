"""Symmetric encryption utilities for protecting stored provider keys."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken


class SecretCipher:
    """Encrypt and decrypt provider keys using a derived Fernet key."""

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Secret encryption key must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
        self._fernet = Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a plaintext key and return the ciphertext."""
        token = self._fernet.encrypt(plaintext.encode("utf-8"))
        return token.decode("utf-8")

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a stored ciphertext and return the plaintext key."""
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt stored key; invalid ciphertext provided."
            ) from exc
        return plaintext.decode("utf-8")


def mask_secret(value: str, *, visible: int = 4) -> str:
    """Return a display-safe preview such as ``sk-...abcd``."""
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:3]}...{value[-visible:]}"


__all__ = ["SecretCipher", "mask_secret"]
