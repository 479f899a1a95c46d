"""Lookups over the seeded blood type and location tables."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DatabaseError

from ..db_models import BloodType, Location

logger = logging.getLogger(__name__)


class ReferenceDataRepository:
    def __init__(self, *, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    async def list_blood_types(self, session: AsyncSession) -> list[BloodType]:
        return await self._all(session, select(BloodType).order_by(BloodType.id), "blood_types")

    async def list_locations(self, session: AsyncSession) -> list[Location]:
        return await self._all(session, select(Location).order_by(Location.id), "locations")

    async def get_blood_type(self, session: AsyncSession, blood_type_id: int) -> BloodType | None:
        rows = await self._all(
            session, select(BloodType).where(BloodType.id == blood_type_id), "blood_types"
        )
        return rows[0] if rows else None

    async def get_location(self, session: AsyncSession, location_id: int) -> Location | None:
        rows = await self._all(
            session, select(Location).where(Location.id == location_id), "locations"
        )
        return rows[0] if rows else None

    async def _all(self, session: AsyncSession, statement, table: str) -> list:
        try:
            result = await session.execute(statement)
        except SQLAlchemyError as exc:
            self._logger.exception("Failed to read reference data", extra={"table": table})
            raise DatabaseError(
                f"Failed to read {table}", operation=f"donation.reference.{table}"
            ) from exc
        return list(result.scalars().all())


__all__ = ["ReferenceDataRepository"]
