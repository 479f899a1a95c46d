"""Session management utilities."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.database.urls import DONATION_DB_URL as CONFIG_DONATION_DB_URL
from core.exceptions import ConfigurationError, DatabaseError
from infrastructure.db import engines
from infrastructure.db.engines import create_database_engine, get_session_factory

logger = logging.getLogger(__name__)

# Lazy-loaded session factory - initialized to None
donation_session_factory: Optional[async_sessionmaker] = None


@asynccontextmanager
async def session_scope(factory: async_sessionmaker) -> AsyncIterator[AsyncSession]:
    """Provide a transactional scope around a series of operations."""

    session = factory()
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise DatabaseError("Database operation failed", operation="transaction") from exc
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


def get_session_dependency(factory: async_sessionmaker) -> Callable[[], AsyncIterator[AsyncSession]]:
    """Return a FastAPI dependency that yields a database session per request."""

    async def _get_session() -> AsyncIterator[AsyncSession]:
        async with session_scope(factory) as session:
            yield session

    return _get_session


def require_donation_session_factory() -> async_sessionmaker:
    """Return the donation session factory or raise a configuration error."""
    global donation_session_factory

    if donation_session_factory is None:
        url = os.getenv("DONATION_DB_URL") or CONFIG_DONATION_DB_URL
        if not url:
            raise ConfigurationError(
                "DONATION_DB_URL is not configured; set it before requesting sessions",
                key="DONATION_DB_URL",
            )

        from config.database.defaults import ECHO, MAX_OVERFLOW, POOL_RECYCLE, POOL_SIZE

        engine = create_database_engine(
            url,
            echo=ECHO,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_recycle=POOL_RECYCLE,
            url_key="DONATION_DB_URL",
        )
        engines.donation_engine = engine
        donation_session_factory = get_session_factory(engine)
        logger.info("Donation database engine initialised", extra={"dialect": engine.dialect.name})

    return donation_session_factory


__all__ = [
    "session_scope",
    "get_session_dependency",
    "require_donation_session_factory",
]
