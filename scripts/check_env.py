"""Pre-flight checks for a keyrelay deployment.

Subcommands:

``check``
    Load ``AppSettings`` from the given ``.env`` file and report any missing
    or malformed values.
``record`` / ``verify``
    Store a SHA256 baseline of the ``.env`` file, then compare against it
    later. A rotated ``SECRET_ENCRYPTION_KEY`` makes every stored key
    unreadable, so drift should be caught before a restart.
``keys``
    Open the key database and decrypt every row with the configured key.

Example::

    python -m scripts.check_env record --env-file /srv/keyrelay/.env \
        --hash-file /srv/keyrelay/.env.sha256
    python -m scripts.check_env verify --env-file /srv/keyrelay/.env \
        --hash-file /srv/keyrelay/.env.sha256
    python -m scripts.check_env keys --env-file /srv/keyrelay/.env
"""

from __future__ import annotations

import argparse
import hashlib
import sqlite3
import sys
from pathlib import Path

from pydantic import ValidationError

from keyrelay.core.config import AppSettings, _load_env_file
from keyrelay.services.secret_cipher import SecretCipher

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_DECRYPT_ERROR = 4
EXIT_RUNTIME_ERROR = 5

# subcommand -> (help text, whether it takes --hash-file)
COMMANDS: dict[str, tuple[str, bool]] = {
    "check": ("Load settings and report problems.", False),
    "record": ("Load settings and write the .env checksum baseline.", True),
    "verify": ("Load settings and compare the .env checksum to the baseline.", True),
    "keys": ("Load settings and decrypt every stored provider key.", False),
}


def _fail(message: str, code: int) -> int:
    print(message, file=sys.stderr)
    return code


def _digest(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> AppSettings:
    """Populate the process environment from ``env_file`` and build settings."""
    _load_env_file(str(env_file))
    return AppSettings(_env_file=env_file)  # type: ignore[call-arg]


def record_baseline(env_file: Path, hash_file: Path) -> int:
    digest = _digest(env_file)
    hash_file.write_text(digest + "\n", encoding="utf-8")
    print(f"Baseline for {env_file} written to {hash_file}: {digest}")
    return EXIT_OK


def verify_baseline(env_file: Path, hash_file: Path) -> int:
    if not hash_file.is_file():
        return _fail(
            f"No baseline at {hash_file}; run 'record' first.", EXIT_RUNTIME_ERROR
        )

    baseline = hash_file.read_text(encoding="utf-8").strip()
    current = _digest(env_file)
    if baseline != current:
        return _fail(
            f"{env_file} changed since the baseline was recorded "
            f"(baseline {baseline}, now {current}).",
            EXIT_CHECKSUM_ERROR,
        )
    print(f"{env_file} matches its baseline.")
    return EXIT_OK


def check_stored_keys(settings: AppSettings) -> int:
    """Decrypt each row of the key table, listing the ones that fail."""
    db_path = Path(settings.db_path)
    if not db_path.exists():
        print(f"Key database {db_path} not found; skipping.")
        return EXIT_OK

    cipher = SecretCipher(secret=settings.security.secret_encryption_key)
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute(
            "SELECT id, service, api_key_encrypted FROM api_keys ORDER BY service"
        ).fetchall()
    except sqlite3.Error as exc:
        return _fail(f"Could not read {db_path}: {exc}", EXIT_RUNTIME_ERROR)
    finally:
        conn.close()

    broken = []
    for key_id, service, ciphertext in rows:
        try:
            cipher.decrypt(ciphertext)
        except ValueError:
            broken.append(f"  {service} ({key_id})")

    if broken:
        return _fail(
            f"{len(broken)}/{len(rows)} stored keys do not decrypt with the "
            "configured SECRET_ENCRYPTION_KEY:\n" + "\n".join(broken),
            EXIT_DECRYPT_ERROR,
        )
    print(f"{len(rows)} stored keys decrypt cleanly.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="check_env", description=__doc__.splitlines()[0])
    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, (help_text, needs_hash) in COMMANDS.items():
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--env-file", type=Path, default=Path(".env"))
        if needs_hash:
            sub.add_argument("--hash-file", type=Path, required=True)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.is_file():
        return _fail(f"Environment file {env_file} not found.", EXIT_RUNTIME_ERROR)

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        return _fail(
            f"Invalid settings in {env_file}:\n{exc.json(indent=2)}",
            EXIT_VALIDATION_ERROR,
        )
    except Exception as exc:  # pylint: disable=broad-except
        return _fail(f"Could not load settings: {exc}", EXIT_RUNTIME_ERROR)

    if args.command == "record":
        return record_baseline(env_file, args.hash_file)
    if args.command == "verify":
        return verify_baseline(env_file, args.hash_file)
    if args.command == "keys":
        return check_stored_keys(settings)
    print(f"Settings OK for the {settings.environment} environment.")
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
