"""Database URL configuration.

Environment Variables:
    - DONATION_DB_URL: Override the entire URL (takes precedence)
    - DB_TYPE: mysql (default), postgresql or sqlite
    - DB_HOST, DB_PORT, DB_NAME: Server location
    - DB_USER, DB_PASSWORD: Credentials
    - DB_SQLITE_PATH: Database file when DB_TYPE=sqlite
"""

from __future__ import annotations

import os

from config.environment import IS_POSTGRESQL, IS_SQLITE
from core.utils.config_helpers import build_mysql_url, build_postgresql_url, build_sqlite_url

DB_HOST = os.getenv("DB_HOST", "")
DB_PORT = os.getenv("DB_PORT", "")
DB_NAME = os.getenv("DB_NAME", "blood_donation")
DB_USER = os.getenv("DB_USER", "bloodconnect")
DB_PASSWORD = os.getenv("DB_PASSWORD", "") or ""
DB_SQLITE_PATH = os.getenv("DB_SQLITE_PATH", "./bloodconnect.db")


def _build_default_url() -> str:
    """Assemble the donation database URL from its parts, or return ``""``."""

    if IS_SQLITE:
        return build_sqlite_url(DB_SQLITE_PATH)
    if not DB_HOST:
        # Empty URL surfaces later as a ConfigurationError
        return ""

    port = int(DB_PORT) if DB_PORT else None
    if IS_POSTGRESQL:
        return build_postgresql_url(DB_USER, DB_PASSWORD, DB_HOST, DB_NAME, port=port)
    return build_mysql_url(DB_USER, DB_PASSWORD, DB_HOST, DB_NAME, port=port)


DONATION_DB_URL = os.getenv("DONATION_DB_URL") or _build_default_url()

__all__ = ["DONATION_DB_URL", "DB_NAME"]
