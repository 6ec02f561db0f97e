"""Test helper that normalizes sys.path and environment defaults."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


_DEFAULT_ENV_VARS: dict[str, str] = {
    "SECRET_ENCRYPTION_KEY": "test-encryption-key",
    "SESSION_SIGNING_SECRET": "test-signing-secret",
    "KEYRELAY_DB_PATH": str(Path(tempfile.gettempdir()) / "keyrelay-tests.db"),
    "APP_LOG_LEVEL": "WARNING",
}

for key, value in _DEFAULT_ENV_VARS.items():
    os.environ.setdefault(key, value)
