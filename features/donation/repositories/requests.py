"""Persistence for donation requests."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DatabaseError

from ..db_models import DonorRequest

logger = logging.getLogger(__name__)


class DonorRequestRepository:
    """Create, load and update :class:`DonorRequest` rows."""

    def __init__(self, *, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    async def create(
        self,
        session: AsyncSession,
        *,
        patient_name: str,
        blood_type_id: int,
        location_id: int,
        urgency_level: str,
        contact_number: str,
        hospital_name: str | None = None,
        additional_notes: str | None = None,
        requested_by_user_id: int | None = None,
        requester_email: str | None = None,
    ) -> DonorRequest:
        request = DonorRequest(
            patient_name=patient_name,
            blood_type_id=blood_type_id,
            location_id=location_id,
            urgency_level=urgency_level,
            contact_number=contact_number,
            hospital_name=hospital_name,
            additional_notes=additional_notes,
            requested_by_user_id=requested_by_user_id,
            requester_email=requester_email,
        )
        session.add(request)
        try:
            await session.flush()
        except SQLAlchemyError as exc:
            self._logger.exception(
                "Failed to create donor request", extra={"operation": "donation.requests.create"}
            )
            raise DatabaseError(
                "Failed to create donor request", operation="donation.requests.create"
            ) from exc

        self._logger.info(
            "Donor request created",
            extra={
                "request_id": request.id,
                "blood_type_id": blood_type_id,
                "location_id": location_id,
            },
        )
        return request

    async def get(self, session: AsyncSession, request_id: int) -> DonorRequest | None:
        try:
            result = await session.execute(
                select(DonorRequest).where(DonorRequest.id == request_id)
            )
        except SQLAlchemyError as exc:
            self._logger.exception(
                "Failed to load donor request",
                extra={"operation": "donation.requests.get", "request_id": request_id},
            )
            raise DatabaseError(
                "Failed to load donor request", operation="donation.requests.get"
            ) from exc
        return result.scalars().first()

    async def update_status(
        self,
        session: AsyncSession,
        request: DonorRequest,
        status: str,
        *,
        completed_at: datetime | None = None,
    ) -> DonorRequest:
        request.status = status
        if completed_at is not None:
            request.completed_at = completed_at
        try:
            await session.flush()
        except SQLAlchemyError as exc:
            self._logger.exception(
                "Failed to update donor request status",
                extra={"operation": "donation.requests.update_status", "request_id": request.id},
            )
            raise DatabaseError(
                "Failed to update donor request status",
                operation="donation.requests.update_status",
            ) from exc
        return request


__all__ = ["DonorRequestRepository"]
