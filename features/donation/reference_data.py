"""Seed rows for the read-only blood type and location tables."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .db_models import BloodType, Location
from .types import ReferenceRow

logger = logging.getLogger(__name__)

BLOOD_TYPES: tuple[ReferenceRow, ...] = (
    {"id": 1, "name": "A+"},
    {"id": 2, "name": "A-"},
    {"id": 3, "name": "B+"},
    {"id": 4, "name": "B-"},
    {"id": 5, "name": "AB+"},
    {"id": 6, "name": "AB-"},
    {"id": 7, "name": "O+"},
    {"id": 8, "name": "O-"},
)

# Lebanese districts grouped by governorate
LOCATIONS: tuple[ReferenceRow, ...] = (
    {"id": 1, "name": "Beirut"},
    {"id": 2, "name": "Baabda"},
    {"id": 3, "name": "Aley"},
    {"id": 4, "name": "Chouf"},
    {"id": 5, "name": "Keserwan"},
    {"id": 6, "name": "Matn"},
    {"id": 7, "name": "Jbeil"},
    {"id": 8, "name": "Zahle"},
    {"id": 9, "name": "Baalbek"},
    {"id": 10, "name": "Hermel"},
    {"id": 11, "name": "Tripoli"},
    {"id": 12, "name": "Miniyeh-Danniyeh"},
    {"id": 13, "name": "Zgharta"},
    {"id": 14, "name": "Koura"},
    {"id": 15, "name": "Batroun"},
    {"id": 16, "name": "Bcharre"},
    {"id": 17, "name": "Akkar"},
    {"id": 18, "name": "Saida"},
    {"id": 19, "name": "Tyre"},
    {"id": 20, "name": "Jezzine"},
    {"id": 21, "name": "Nabatieh"},
    {"id": 22, "name": "Bint Jbeil"},
    {"id": 23, "name": "Marjeyoun"},
    {"id": 24, "name": "Hasbaya"},
    {"id": 25, "name": "Rachaya"},
    {"id": 26, "name": "West Beqaa"},
)


async def seed_reference_data(session: AsyncSession) -> int:
    """Insert any missing blood types and locations; return rows added.

    Existing rows are left untouched. The caller owns the transaction.
    """

    existing_types = set((await session.execute(select(BloodType.id))).scalars().all())
    existing_locations = set((await session.execute(select(Location.id))).scalars().all())

    added = 0
    for row in BLOOD_TYPES:
        if row["id"] not in existing_types:
            session.add(BloodType(id=row["id"], type=row["name"]))
            added += 1
    for row in LOCATIONS:
        if row["id"] not in existing_locations:
            session.add(Location(id=row["id"], district=row["name"]))
            added += 1

    if added:
        await session.flush()
        logger.info("Seeded donation reference data", extra={"rows_added": added})
    return added


__all__ = ["BLOOD_TYPES", "LOCATIONS", "seed_reference_data"]
