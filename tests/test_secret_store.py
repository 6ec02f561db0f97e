from __future__ import annotations

import sqlite3
import threading

from keyrelay.clients.secret_store import SecretStore


def _raw_rows(store_path: str) -> list[sqlite3.Row]:
    conn = sqlite3.connect(store_path)
    conn.row_factory = sqlite3.Row
    try:
        return conn.execute("SELECT * FROM api_keys").fetchall()
    finally:
        conn.close()


def test_upsert_keeps_single_row_per_user_and_service(store) -> None:
    first = store.upsert_secret(user_id="user-1", service="openai", value="A")
    second = store.upsert_secret(user_id="user-1", service="openai", value="B")

    secrets = store.list_secrets(user_id="user-1")
    assert len(secrets) == 1
    assert secrets[0].value == "B"
    assert second.id == first.id
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at


def test_values_are_encrypted_at_rest(tmp_path, cipher) -> None:
    db_path = str(tmp_path / "keys.db")
    store = SecretStore(db_path, cipher=cipher)
    store.upsert_secret(user_id="user-1", service="replicate", value="r8_xxx")

    rows = _raw_rows(db_path)
    assert len(rows) == 1
    assert rows[0]["api_key_encrypted"] != "r8_xxx"
    assert "r8_xxx" not in rows[0]["api_key_encrypted"]
    assert cipher.decrypt(rows[0]["api_key_encrypted"]) == "r8_xxx"


def test_rows_are_isolated_per_user(store) -> None:
    owned = store.upsert_secret(user_id="user-x", service="openai", value="sk-x")

    assert store.list_secrets(user_id="user-y") == []
    assert store.get_secret(user_id="user-y", service="openai") is None
    assert store.update_secret(user_id="user-y", secret_id=owned.id, value="stolen") is None
    assert store.delete_secret(user_id="user-y", secret_id=owned.id) is False

    remaining = store.get_secret(user_id="user-x", service="openai")
    assert remaining is not None
    assert remaining.value == "sk-x"


def test_same_service_for_two_users_creates_two_rows(store) -> None:
    store.upsert_secret(user_id="user-1", service="openai", value="one")
    store.upsert_secret(user_id="user-2", service="openai", value="two")

    assert store.get_secret(user_id="user-1", service="openai").value == "one"
    assert store.get_secret(user_id="user-2", service="openai").value == "two"


def test_update_and_delete_by_id(store) -> None:
    created = store.upsert_secret(user_id="user-1", service="writesonic", value="old")

    updated = store.update_secret(user_id="user-1", secret_id=created.id, value="new")
    assert updated is not None
    assert updated.value == "new"

    assert store.delete_secret(user_id="user-1", secret_id=created.id) is True
    assert store.list_secrets(user_id="user-1") == []
    assert store.delete_secret(user_id="user-1", secret_id=created.id) is False


def test_concurrent_saves_never_duplicate_rows(tmp_path, cipher) -> None:
    db_path = str(tmp_path / "keys.db")
    store = SecretStore(db_path, cipher=cipher)
    errors: list[Exception] = []

    def save(value: str) -> None:
        try:
            store.upsert_secret(user_id="user-1", service="openai", value=value)
        except Exception as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=save, args=(f"key-{i}",)) for i in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert not errors
    assert len(_raw_rows(db_path)) == 1
