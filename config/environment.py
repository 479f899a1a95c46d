"""Deployment environment and database backend detection."""

from __future__ import annotations

from typing import Literal

from core.utils.env import get_env, get_node_env

DatabaseType = Literal["mysql", "postgresql", "sqlite"]

_DATABASE_ALIASES: dict[str, DatabaseType] = {
    "mysql": "mysql",
    "mariadb": "mysql",
    "postgresql": "postgresql",
    "postgres": "postgresql",
    "pg": "postgresql",
    "sqlite": "sqlite",
}


def get_database_type() -> DatabaseType:
    """Resolve ``DB_TYPE``; unknown or missing values mean MySQL."""

    raw = (get_env("DB_TYPE", default="") or "").strip().lower()
    return _DATABASE_ALIASES.get(raw, "mysql")


ENVIRONMENT = get_node_env()

DATABASE_TYPE: DatabaseType = get_database_type()
IS_POSTGRESQL = DATABASE_TYPE == "postgresql"
IS_SQLITE = DATABASE_TYPE == "sqlite"

__all__ = [
    "DatabaseType",
    "ENVIRONMENT",
    "DATABASE_TYPE",
    "IS_POSTGRESQL",
    "IS_SQLITE",
    "get_database_type",
]
