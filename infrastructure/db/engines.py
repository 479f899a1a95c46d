"""Database engine management utilities.

Supports MySQL (aiomysql) and PostgreSQL (asyncpg) in deployment and SQLite
(aiosqlite) for local runs and tests. The driver is detected from the URL.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from config.database.defaults import CONNECT_TIMEOUT
from core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

AsyncSessionFactory = async_sessionmaker[AsyncSession]
SessionDependency = Callable[[], AsyncIterator[AsyncSession]]

# Lazy-loaded engine - initialized to None
donation_engine: Optional[AsyncEngine] = None


def create_database_engine(
    url: str,
    *,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 10,
    pool_recycle: int = 900,
    url_key: str = "DONATION_DB_URL",
) -> AsyncEngine:
    """Create an async SQLAlchemy engine for MySQL, PostgreSQL or SQLite."""

    if not url:
        raise ConfigurationError("Database connection URL is required", key=url_key)

    if url.startswith("sqlite"):
        # aiosqlite runs on a single connection thread; pool sizing does not apply
        return create_async_engine(url, echo=echo)

    if url.startswith("postgresql"):
        connect_args: dict = {"command_timeout": CONNECT_TIMEOUT * 2}
    else:
        connect_args = {"connect_timeout": CONNECT_TIMEOUT}

    return create_async_engine(
        url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_recycle=pool_recycle,
        pool_pre_ping=True,
        isolation_level="READ COMMITTED",
        connect_args=connect_args,
    )


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Return an ``async_sessionmaker`` bound to ``engine``."""

    return async_sessionmaker(engine, expire_on_commit=False)


async def dispose_all_engines() -> None:
    """Dispose any initialized async engines.

    Useful for scripts/tests to avoid event-loop shutdown warnings.
    """
    global donation_engine

    if donation_engine is None:
        return

    try:
        await donation_engine.dispose()
    except Exception:  # pragma: no cover - best-effort cleanup
        logger.warning("Failed to dispose donation engine", exc_info=True)
    finally:
        donation_engine = None
        from infrastructure.db import sessions

        sessions.donation_session_factory = None


__all__ = [
    "AsyncSessionFactory",
    "SessionDependency",
    "create_database_engine",
    "get_session_factory",
    "dispose_all_engines",
]
