"""Persistence for donor confirmations keyed by (request, donor)."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import DatabaseError

from ..db_models import DonorConfirmation
from ..types import ConfirmationStatus

logger = logging.getLogger(__name__)


class ConfirmationRepository:
    """Row-level access to ``donor_confirmations``.

    ``insert`` lets :class:`~sqlalchemy.exc.IntegrityError` escape unchanged
    so the ledger can treat a lost insert race as an update.
    """

    def __init__(self, *, log: logging.Logger | None = None) -> None:
        self._logger = log or logger

    async def get_by_key(
        self,
        session: AsyncSession,
        request_id: int,
        donor_id: int,
        *,
        for_update: bool = False,
    ) -> DonorConfirmation | None:
        """Load the pair's row; ``for_update`` holds a row lock until commit."""

        statement = select(DonorConfirmation).where(
            DonorConfirmation.request_id == request_id,
            DonorConfirmation.donor_id == donor_id,
        )
        if for_update:
            # Ignored by SQLite, which serialises writers on the database file
            statement = statement.with_for_update()
        try:
            result = await session.execute(statement)
        except SQLAlchemyError as exc:
            self._logger.exception(
                "Failed to load confirmation",
                extra={"request_id": request_id, "donor_id": donor_id},
            )
            raise DatabaseError(
                "Failed to load confirmation", operation="donation.confirmations.get"
            ) from exc
        return result.scalars().first()

    async def insert(
        self,
        session: AsyncSession,
        *,
        request_id: int,
        donor_id: int,
        status: str,
        confirmed_at: datetime,
        message: str | None = None,
        admin_notes: str | None = None,
        contacted_at: datetime | None = None,
    ) -> DonorConfirmation:
        confirmation = DonorConfirmation(
            request_id=request_id,
            donor_id=donor_id,
            status=status,
            message=message,
            admin_notes=admin_notes,
            confirmed_at=confirmed_at,
            contacted_at=contacted_at,
        )
        session.add(confirmation)
        try:
            await session.flush()
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            self._logger.exception(
                "Failed to insert confirmation",
                extra={"request_id": request_id, "donor_id": donor_id},
            )
            raise DatabaseError(
                "Failed to insert confirmation", operation="donation.confirmations.insert"
            ) from exc
        return confirmation

    async def claim_confirmed(self, session: AsyncSession, confirmation_id: int) -> bool:
        """Flip the row to Confirmed unless it already is.

        Returns ``True`` only for the writer whose update changed the row, so
        concurrent writers in other processes see at most one transition.
        """

        confirmed = ConfirmationStatus.CONFIRMED.value
        statement = (
            update(DonorConfirmation)
            .where(
                DonorConfirmation.id == confirmation_id,
                DonorConfirmation.status != confirmed,
            )
            .values(status=confirmed)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await session.execute(statement)
        except SQLAlchemyError as exc:
            self._logger.exception(
                "Failed to claim confirmation", extra={"confirmation_id": confirmation_id}
            )
            raise DatabaseError(
                "Failed to claim confirmation", operation="donation.confirmations.claim"
            ) from exc
        return result.rowcount == 1

    async def save(self, session: AsyncSession, confirmation: DonorConfirmation) -> DonorConfirmation:
        """Flush pending changes made to an already persistent confirmation."""

        try:
            await session.flush()
        except SQLAlchemyError as exc:
            self._logger.exception(
                "Failed to update confirmation",
                extra={"confirmation_id": confirmation.id},
            )
            raise DatabaseError(
                "Failed to update confirmation", operation="donation.confirmations.update"
            ) from exc
        return confirmation

    async def list_for_request(
        self, session: AsyncSession, request_id: int
    ) -> list[DonorConfirmation]:
        """Return confirmations for ``request_id``, most recent first."""

        statement = (
            select(DonorConfirmation)
            .where(DonorConfirmation.request_id == request_id)
            .order_by(DonorConfirmation.confirmed_at.desc(), DonorConfirmation.id.desc())
        )
        try:
            result = await session.execute(statement)
        except SQLAlchemyError as exc:
            self._logger.exception(
                "Failed to list confirmations", extra={"request_id": request_id}
            )
            raise DatabaseError(
                "Failed to list confirmations", operation="donation.confirmations.list"
            ) from exc
        return list(result.scalars().all())


__all__ = ["ConfirmationRepository"]
