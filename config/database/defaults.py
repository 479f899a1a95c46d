"""Database pool and schema bootstrap settings."""

from __future__ import annotations

from core.utils.env import get_bool_env, get_int_env

# Pool sizing applies to MySQL and PostgreSQL only
POOL_SIZE = get_int_env("DB_POOL_SIZE", 10)
MAX_OVERFLOW = get_int_env("DB_MAX_OVERFLOW", 10)
POOL_RECYCLE = get_int_env("DB_POOL_RECYCLE", 900)
CONNECT_TIMEOUT = get_int_env("DB_CONNECT_TIMEOUT", 5)
ECHO = get_bool_env("DB_ECHO", False)

# Create tables and seed blood types/locations on startup (local and test only)
AUTO_CREATE_SCHEMA = get_bool_env("DB_AUTO_CREATE_SCHEMA", False)

__all__ = [
    "POOL_SIZE",
    "MAX_OVERFLOW",
    "POOL_RECYCLE",
    "CONNECT_TIMEOUT",
    "ECHO",
    "AUTO_CREATE_SCHEMA",
]
