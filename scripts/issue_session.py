#!/usr/bin/env python
"""Mint a locally signed session token for development against the relay.

Only meaningful when no remote identity provider is configured; the relay
then accepts tokens signed with ``SESSION_SIGNING_SECRET`` (or the encryption
key when that is unset).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from keyrelay.clients.identity import SessionTokenSigner  # noqa: E402
from keyrelay.core.config import get_settings  # noqa: E402


def build_signer() -> SessionTokenSigner:
    security = get_settings().security
    secret = security.session_signing_secret or security.secret_encryption_key
    return SessionTokenSigner(secret, ttl_seconds=security.session_ttl_seconds)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Issue a local session token.")
    parser.add_argument("user_id", help="User identifier to embed in the token.")
    parser.add_argument(
        "--ttl",
        type=int,
        default=None,
        help="Token lifetime in seconds (default: SESSION_TTL).",
    )
    args = parser.parse_args(argv)

    if get_settings().identity.remote_enabled:
        print(
            "A remote identity provider is configured; locally issued tokens "
            "will be rejected by the relay.",
            file=sys.stderr,
        )
        return 1

    print(build_signer().issue(args.user_id, ttl_seconds=args.ttl))
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
