"""SQLAlchemy declarative base for the donation schema."""

from __future__ import annotations

import logging
from typing import Final

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)

# Deterministic constraint names keep MySQL and PostgreSQL migrations aligned
NAMING_CONVENTION: Final = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)


metadata = Base.metadata


async def prepare_database(engine: AsyncEngine) -> None:
    """Create any missing tables on ``engine``; existing tables are left alone."""

    async with engine.begin() as connection:
        await connection.run_sync(metadata.create_all)
    logger.info(
        "Database schema ready",
        extra={"dialect": engine.dialect.name, "tables": len(metadata.tables)},
    )


__all__: Final = ["Base", "metadata", "prepare_database", "NAMING_CONVENTION"]
