"""Compute the eligible donor set for a donation request."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from .db_models import DonorProfile, DonorRequest
from .repositories import DonorDirectoryRepository

logger = logging.getLogger(__name__)


class MatchingEngine:
    """Exact blood type and exact district; no fuzzy or compatibility matching."""

    def __init__(self, directory: DonorDirectoryRepository | None = None) -> None:
        self._directory = directory or DonorDirectoryRepository()

    async def match_donors(self, session: AsyncSession, request: DonorRequest) -> list[DonorProfile]:
        donors = await self._directory.find_eligible_donors(
            session, request.blood_type_id, request.location_id
        )
        if not donors:
            logger.info(
                "No eligible donors for request",
                extra={
                    "request_id": request.id,
                    "blood_type_id": request.blood_type_id,
                    "location_id": request.location_id,
                },
            )
        return donors


__all__ = ["MatchingEngine"]
