"""
Settings dependency shared by the client factories.
"""

from keyrelay.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning the process-wide settings."""
    return get_settings()


__all__ = ["get_app_settings"]
