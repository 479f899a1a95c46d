"""Helper utilities for configuration modules."""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import URL

_DEFAULT_PORTS = {"mysql+aiomysql": 3306, "postgresql+asyncpg": 5432}


def build_database_url(
    user: str,
    password: str | None,
    host: str,
    database: str,
    *,
    driver: str = "mysql+aiomysql",
    port: int | None = None,
) -> str:
    """Build an async server database URL.

    ``host`` may carry its own ``:port`` suffix, which wins over ``port``.
    Credentials are escaped by SQLAlchemy, so passwords may contain ``@``.
    """

    if ":" in host:
        host, _, raw_port = host.partition(":")
        port = int(raw_port)

    url = URL.create(
        drivername=driver,
        username=user or None,
        password=password or None,
        host=host,
        port=port or _DEFAULT_PORTS.get(driver),
        database=database,
    )
    return url.render_as_string(hide_password=False)


def build_mysql_url(user: str, password: str | None, host: str, database: str, *, port: int | None = None) -> str:
    """Return an aiomysql connection string."""
    return build_database_url(user, password, host, database, driver="mysql+aiomysql", port=port)


def build_postgresql_url(user: str, password: str | None, host: str, database: str, *, port: int | None = None) -> str:
    """Return an asyncpg connection string."""
    return build_database_url(user, password, host, database, driver="postgresql+asyncpg", port=port)


def build_sqlite_url(path: str | Path) -> str:
    """Return an aiosqlite URL for a database file (used for local runs)."""

    return f"sqlite+aiosqlite:///{Path(path).expanduser()}"


__all__ = ["build_database_url", "build_mysql_url", "build_postgresql_url", "build_sqlite_url"]
