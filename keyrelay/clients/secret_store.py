"""SQLite-backed storage for per-user provider keys.

Every query is filtered by the owning user id, so a caller can never read,
update or delete another user's row regardless of what the route layer does.
Values are encrypted at rest with :class:`SecretCipher`.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

if TYPE_CHECKING:
    from keyrelay.services.secret_cipher import SecretCipher


class SecretStoreError(Exception):
    """Raised when the underlying database operation fails."""


@dataclass(slots=True)
class StoredSecret:
    """A decrypted provider key owned by one user."""

    id: str
    user_id: str
    service: str
    value: str
    created_at: datetime
    updated_at: datetime


class SecretStore:
    """Provider key table keyed by id and unique per (user_id, service)."""

    def __init__(self, db_path: str, *, cipher: SecretCipher) -> None:
        self._db_path = Path(db_path)
        self._cipher = cipher
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS api_keys (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    service TEXT NOT NULL,
                    api_key_encrypted TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (user_id, service)
                )
                """
            )

    def _to_secret(self, row: sqlite3.Row) -> StoredSecret:
        return StoredSecret(
            id=row["id"],
            user_id=row["user_id"],
            service=row["service"],
            value=self._cipher.decrypt(row["api_key_encrypted"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def list_secrets(self, *, user_id: str) -> list[StoredSecret]:
        try:
            with self._connect() as conn:
                rows = conn.execute(
                    "SELECT * FROM api_keys WHERE user_id = ? ORDER BY created_at",
                    (user_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise SecretStoreError("Failed to list stored keys.") from exc
        return [self._to_secret(row) for row in rows]

    def get_secret(self, *, user_id: str, service: str) -> Optional[StoredSecret]:
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM api_keys WHERE user_id = ? AND service = ?",
                    (user_id, service),
                ).fetchone()
        except sqlite3.Error as exc:
            raise SecretStoreError("Failed to read stored key.") from exc
        if not row:
            return None
        return self._to_secret(row)

    def upsert_secret(self, *, user_id: str, service: str, value: str) -> StoredSecret:
        """Insert a key for the pair, or replace the value of the existing row."""
        now_iso = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO api_keys (
                        id, user_id, service, api_key_encrypted, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    ON CONFLICT(user_id, service) DO UPDATE SET
                        api_key_encrypted = excluded.api_key_encrypted,
                        updated_at = excluded.updated_at
                    """,
                    (
                        uuid4().hex,
                        user_id,
                        service,
                        self._cipher.encrypt(value),
                        now_iso,
                        now_iso,
                    ),
                )
                row = conn.execute(
                    "SELECT * FROM api_keys WHERE user_id = ? AND service = ?",
                    (user_id, service),
                ).fetchone()
        except sqlite3.Error as exc:
            raise SecretStoreError("Failed to save key.") from exc
        return self._to_secret(row)

    def update_secret(
        self, *, user_id: str, secret_id: str, value: str
    ) -> Optional[StoredSecret]:
        """Replace the value of an owned row; ``None`` when not found or not owned."""
        now_iso = datetime.now(timezone.utc).isoformat()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    UPDATE api_keys
                    SET api_key_encrypted = ?, updated_at = ?
                    WHERE id = ? AND user_id = ?
                    """,
                    (self._cipher.encrypt(value), now_iso, secret_id, user_id),
                )
                if cursor.rowcount == 0:
                    return None
                row = conn.execute(
                    "SELECT * FROM api_keys WHERE id = ? AND user_id = ?",
                    (secret_id, user_id),
                ).fetchone()
        except sqlite3.Error as exc:
            raise SecretStoreError("Failed to update key.") from exc
        return self._to_secret(row)

    def delete_secret(self, *, user_id: str, secret_id: str) -> bool:
        """Remove an owned row; returns False when nothing matched."""
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    "DELETE FROM api_keys WHERE id = ? AND user_id = ?",
                    (secret_id, user_id),
                )
        except sqlite3.Error as exc:
            raise SecretStoreError("Failed to delete key.") from exc
        return cursor.rowcount > 0


__all__ = ["SecretStore", "SecretStoreError", "StoredSecret"]
