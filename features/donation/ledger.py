"""Idempotent store of each donor's answer to each request.

There is at most one ``donor_confirmations`` row per ``(request_id,
donor_id)``. Writes to the same pair are serialised in-process with a
per-pair :class:`asyncio.Lock`. Between processes the unique constraint
guards inserts (a losing insert is replayed as an update), the read takes a
row lock, and the Confirmed transition is a guarded ``UPDATE`` that only one
writer can win. Each write runs in its own session and commits before
returning, so callers can safely react to ``transitioned_to_confirmed`` from
detached tasks.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from datetime import UTC, datetime
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.donation import ADMIN_NOTES_MAX_LENGTH, MESSAGE_MAX_LENGTH
from core.exceptions import DatabaseError

from .repositories import ConfirmationRepository
from .schemas.internal import ConfirmationRecord, LedgerResult
from .types import ConfirmationStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")
LedgerKey = tuple[int, int]

_WRITE_ATTEMPTS = 2


def truncate(value: str | None, limit: int) -> str | None:
    if value is None:
        return None
    return value if len(value) <= limit else value[:limit]


class ConfirmationLedger:
    """Upsert confirmations and report whether a write confirmed the donor."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        repository: ConfirmationRepository | None = None,
        max_message_length: int = MESSAGE_MAX_LENGTH,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._repository = repository or ConfirmationRepository()
        self._max_message_length = max_message_length
        self._clock = clock or (lambda: datetime.now(UTC))
        self._locks: weakref.WeakValueDictionary[LedgerKey, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, key: LedgerKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def record_confirmation(
        self,
        request_id: int,
        donor_id: int,
        status: ConfirmationStatus | str = ConfirmationStatus.CONFIRMED,
        message: str | None = None,
        admin_notes: str | None = None,
    ) -> LedgerResult:
        """Insert or update the pair's row with ``status``."""

        status_value = ConfirmationStatus(status).value
        message = truncate(message, self._max_message_length)
        admin_notes = truncate(admin_notes, ADMIN_NOTES_MAX_LENGTH)

        async def apply(session: AsyncSession) -> LedgerResult:
            now = self._clock()
            existing = await self._repository.get_by_key(
                session, request_id, donor_id, for_update=True
            )
            if existing is None:
                created = await self._repository.insert(
                    session,
                    request_id=request_id,
                    donor_id=donor_id,
                    status=status_value,
                    message=message,
                    admin_notes=admin_notes or None,
                    confirmed_at=now,
                )
                return LedgerResult(
                    is_new_record=True,
                    transitioned_to_confirmed=status_value == ConfirmationStatus.CONFIRMED.value,
                    confirmation=ConfirmationRecord.model_validate(created),
                )

            transitioned = False
            if (
                status_value == ConfirmationStatus.CONFIRMED.value
                and existing.status != ConfirmationStatus.CONFIRMED.value
            ):
                # The row read may be stale; only the writer whose update flips it transitions
                transitioned = await self._repository.claim_confirmed(session, existing.id)
            existing.status = status_value
            existing.message = message
            existing.confirmed_at = now
            if admin_notes and admin_notes.strip():
                existing.admin_notes = admin_notes
            await self._repository.save(session, existing)
            return LedgerResult(
                is_new_record=False,
                transitioned_to_confirmed=transitioned,
                confirmation=ConfirmationRecord.model_validate(existing),
            )

        result = await self._write((request_id, donor_id), apply)
        logger.info(
            "Confirmation recorded",
            extra={
                "request_id": request_id,
                "donor_id": donor_id,
                "status": status_value,
                "is_new_record": result.is_new_record,
                "transitioned_to_confirmed": result.transitioned_to_confirmed,
            },
        )
        return result

    async def mark_contacted(self, request_id: int, donor_id: int) -> ConfirmationRecord:
        """Stamp ``contacted_at``, creating a Pending row when none exists.

        An existing status is never changed.
        """

        async def apply(session: AsyncSession) -> ConfirmationRecord:
            now = self._clock()
            existing = await self._repository.get_by_key(
                session, request_id, donor_id, for_update=True
            )
            if existing is None:
                created = await self._repository.insert(
                    session,
                    request_id=request_id,
                    donor_id=donor_id,
                    status=ConfirmationStatus.PENDING.value,
                    confirmed_at=now,
                    contacted_at=now,
                )
                return ConfirmationRecord.model_validate(created)

            existing.contacted_at = now
            await self._repository.save(session, existing)
            return ConfirmationRecord.model_validate(existing)

        return await self._write((request_id, donor_id), apply)

    async def _write(self, key: LedgerKey, apply: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async with self._lock_for(key):
            for attempt in range(1, _WRITE_ATTEMPTS + 1):
                session: AsyncSession = self._session_factory()
                try:
                    result = await apply(session)
                    await session.commit()
                    return result
                except IntegrityError as exc:
                    await session.rollback()
                    if attempt == _WRITE_ATTEMPTS:
                        raise DatabaseError(
                            "Confirmation write conflicted repeatedly",
                            operation="donation.ledger.write",
                        ) from exc
                    # Another writer inserted the pair first; re-read and update
                    logger.info(
                        "Confirmation insert lost a race; retrying as update",
                        extra={"request_id": key[0], "donor_id": key[1]},
                    )
                except SQLAlchemyError as exc:
                    await session.rollback()
                    raise DatabaseError(
                        "Failed to write confirmation", operation="donation.ledger.write"
                    ) from exc
                except Exception:
                    await session.rollback()
                    raise
                finally:
                    await session.close()

        raise DatabaseError(  # pragma: no cover - loop always returns or raises
            "Failed to write confirmation", operation="donation.ledger.write"
        )


__all__ = ["ConfirmationLedger", "truncate"]
