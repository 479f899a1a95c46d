"""Read-only queries over donor profiles."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DatabaseError

from ..db_models import Donor, DonorProfile

logger = logging.getLogger(__name__)


class DonorDirectoryRepository:
    """Look up donor profiles for matching and reply correlation."""

    def __init__(self, *, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    async def find_eligible_donors(
        self,
        session: AsyncSession,
        blood_type_id: int,
        location_id: int,
    ) -> list[DonorProfile]:
        """Return available, healthy donors with exactly this blood type and location."""

        statement = select(DonorProfile).where(
            DonorProfile.blood_type_id == blood_type_id,
            DonorProfile.location_id == location_id,
            DonorProfile.is_available.is_(True),
            DonorProfile.is_healthy_for_donation.is_(True),
        )
        profiles = await self._scalars(session, statement, "donation.donors.eligible")
        self._logger.debug(
            "Fetched eligible donors",
            extra={
                "blood_type_id": blood_type_id,
                "location_id": location_id,
                "count": len(profiles),
            },
        )
        return profiles

    async def get_profile(self, session: AsyncSession, donor_id: int) -> DonorProfile | None:
        statement = select(DonorProfile).where(DonorProfile.donor_id == donor_id)
        profiles = await self._scalars(session, statement, "donation.donors.get")
        return profiles[0] if profiles else None

    async def get_profiles(
        self, session: AsyncSession, donor_ids: Iterable[int]
    ) -> dict[int, DonorProfile]:
        """Return profiles keyed by donor id; unknown ids are simply absent."""

        wanted = sorted(set(donor_ids))
        if not wanted:
            return {}
        statement = select(DonorProfile).where(DonorProfile.donor_id.in_(wanted))
        profiles = await self._scalars(session, statement, "donation.donors.get_many")
        return {profile.donor_id: profile for profile in profiles}

    async def get_user(self, session: AsyncSession, user_id: int) -> Donor | None:
        try:
            return await session.get(Donor, user_id)
        except SQLAlchemyError as exc:
            self._logger.exception("Failed to load user", extra={"user_id": user_id})
            raise DatabaseError("Failed to load user", operation="donation.users.get") from exc

    async def find_donor_for_reply(
        self,
        session: AsyncSession,
        email: str,
        blood_type_id: int,
        location_id: int,
    ) -> DonorProfile | None:
        """Resolve a reply sender to a donor compatible with the request.

        Returns ``None`` unless exactly one profile matches, so an ambiguous
        sender is never credited with a confirmation.
        """

        normalised = (email or "").strip().lower()
        if not normalised:
            return None

        statement = (
            select(DonorProfile)
            .join(Donor, Donor.id == DonorProfile.donor_id)
            .where(
                func.lower(Donor.email) == normalised,
                DonorProfile.blood_type_id == blood_type_id,
                DonorProfile.location_id == location_id,
            )
        )
        profiles = await self._scalars(session, statement, "donation.donors.by_email")
        if len(profiles) != 1:
            if profiles:
                self._logger.warning(
                    "Reply sender matches several donors",
                    extra={"sender": normalised, "count": len(profiles)},
                )
            return None
        return profiles[0]

    async def _scalars(self, session: AsyncSession, statement, operation: str) -> list[DonorProfile]:
        try:
            result = await session.execute(statement)
        except SQLAlchemyError as exc:
            self._logger.exception("Failed to query donor profiles", extra={"operation": operation})
            raise DatabaseError("Failed to query donor profiles", operation=operation) from exc
        return list(result.scalars().all())


__all__ = ["DonorDirectoryRepository"]
