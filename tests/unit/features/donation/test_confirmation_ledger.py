from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest
from sqlalchemy import func, select

from features.donation.db_models import DonorConfirmation
from features.donation.ledger import ConfirmationLedger, truncate
from features.donation.repositories import ConfirmationRepository
from features.donation.types import ConfirmationStatus
from infrastructure.db import session_scope
from tests.utils.donation_factories import add_donor, add_request


@pytest.fixture
def ledger(session_factory) -> ConfirmationLedger:
    return ConfirmationLedger(session_factory)


async def _seed_pair(session_factory) -> tuple[int, int]:
    async with session_scope(session_factory) as session:
        profile = await add_donor(session, 1)
        request = await add_request(session)
        return request.id, profile.donor_id


async def _rows(session_factory, request_id: int) -> list[DonorConfirmation]:
    async with session_scope(session_factory) as session:
        result = await session.execute(
            select(DonorConfirmation).where(DonorConfirmation.request_id == request_id)
        )
        return list(result.scalars().all())


async def _count(session_factory) -> int:
    async with session_scope(session_factory) as session:
        return (await session.execute(select(func.count()).select_from(DonorConfirmation))).scalar_one()


def test_truncate_limits_length() -> None:
    assert truncate(None, 5) is None
    assert truncate("short", 10) == "short"
    assert truncate("x" * 12, 10) == "x" * 10


@pytest.mark.asyncio
async def test_first_confirmation_creates_row_and_transitions(ledger, session_factory):
    request_id, donor_id = await _seed_pair(session_factory)

    result = await ledger.record_confirmation(request_id, donor_id, message="YES")

    assert result.is_new_record is True
    assert result.transitioned_to_confirmed is True
    assert result.confirmation.status == "Confirmed"
    assert result.confirmation.message == "YES"
    rows = await _rows(session_factory, request_id)
    assert [(row.donor_id, row.status) for row in rows] == [(donor_id, "Confirmed")]


@pytest.mark.asyncio
async def test_repeated_confirmation_is_idempotent(ledger, session_factory):
    request_id, donor_id = await _seed_pair(session_factory)

    first = await ledger.record_confirmation(request_id, donor_id, message="yes")
    second = await ledger.record_confirmation(request_id, donor_id, message="yes again")

    assert first.transitioned_to_confirmed is True
    assert second.is_new_record is False
    assert second.transitioned_to_confirmed is False
    assert second.confirmation.id == first.confirmation.id
    assert second.confirmation.message == "yes again"
    assert await _count(session_factory) == 1


@pytest.mark.asyncio
async def test_declined_row_transitions_when_later_confirmed(ledger, session_factory):
    request_id, donor_id = await _seed_pair(session_factory)

    declined = await ledger.record_confirmation(
        request_id, donor_id, status=ConfirmationStatus.DECLINED
    )
    confirmed = await ledger.record_confirmation(request_id, donor_id)

    assert declined.transitioned_to_confirmed is False
    assert confirmed.is_new_record is False
    assert confirmed.transitioned_to_confirmed is True


@pytest.mark.asyncio
async def test_blank_admin_notes_do_not_clear_existing_notes(ledger, session_factory):
    request_id, donor_id = await _seed_pair(session_factory)

    await ledger.record_confirmation(request_id, donor_id, admin_notes="Called twice")
    result = await ledger.record_confirmation(request_id, donor_id, admin_notes="   ")

    assert result.confirmation.admin_notes == "Called twice"


@pytest.mark.asyncio
async def test_later_write_without_notes_keeps_admin_notes(ledger, session_factory):
    request_id, donor_id = await _seed_pair(session_factory)

    await ledger.record_confirmation(
        request_id, donor_id, status=ConfirmationStatus.PENDING, admin_notes="verified by phone"
    )
    result = await ledger.record_confirmation(request_id, donor_id, admin_notes=None)

    assert result.confirmation.status == "Confirmed"
    assert result.confirmation.admin_notes == "verified by phone"
    rows = await _rows(session_factory, request_id)
    assert rows[0].admin_notes == "verified by phone"


@pytest.mark.asyncio
async def test_long_messages_are_truncated(session_factory):
    request_id, donor_id = await _seed_pair(session_factory)
    ledger = ConfirmationLedger(session_factory, max_message_length=20)

    result = await ledger.record_confirmation(request_id, donor_id, message="y" * 50)

    assert result.confirmation.message == "y" * 20


@pytest.mark.asyncio
async def test_concurrent_confirmations_transition_exactly_once(ledger, session_factory):
    request_id, donor_id = await _seed_pair(session_factory)

    results = await asyncio.gather(
        *(ledger.record_confirmation(request_id, donor_id, message=f"yes {i}") for i in range(5))
    )

    assert sum(result.transitioned_to_confirmed for result in results) == 1
    assert sum(result.is_new_record for result in results) == 1
    assert await _count(session_factory) == 1


class RacingConfirmationRepository(ConfirmationRepository):
    """Lets another writer insert the pair between our read and our insert."""

    def __init__(self, session_factory) -> None:
        super().__init__()
        self._session_factory = session_factory
        self.raced = False

    async def get_by_key(self, session, request_id, donor_id, **kwargs):
        if not self.raced:
            self.raced = True
            async with session_scope(self._session_factory) as other:
                other.add(
                    DonorConfirmation(
                        request_id=request_id,
                        donor_id=donor_id,
                        status="Pending",
                        confirmed_at=datetime.now(UTC),
                    )
                )
            return None
        return await super().get_by_key(session, request_id, donor_id, **kwargs)


@pytest.mark.asyncio
async def test_lost_insert_race_is_retried_as_update(session_factory):
    request_id, donor_id = await _seed_pair(session_factory)
    repository = RacingConfirmationRepository(session_factory)
    ledger = ConfirmationLedger(session_factory, repository=repository)

    result = await ledger.record_confirmation(request_id, donor_id, message="yes")

    assert repository.raced is True
    assert result.is_new_record is False
    assert result.transitioned_to_confirmed is True
    rows = await _rows(session_factory, request_id)
    assert len(rows) == 1
    assert rows[0].status == "Confirmed"


@pytest.mark.asyncio
async def test_mark_contacted_creates_pending_row(ledger, session_factory):
    request_id, donor_id = await _seed_pair(session_factory)

    record = await ledger.mark_contacted(request_id, donor_id)

    assert record.status == "Pending"
    assert record.contacted_at is not None

    result = await ledger.record_confirmation(request_id, donor_id)
    assert result.is_new_record is False
    assert result.transitioned_to_confirmed is True
    assert result.confirmation.contacted_at is not None


@pytest.mark.asyncio
async def test_mark_contacted_keeps_existing_status(ledger, session_factory):
    request_id, donor_id = await _seed_pair(session_factory)
    await ledger.record_confirmation(request_id, donor_id)

    record = await ledger.mark_contacted(request_id, donor_id)

    assert record.status == "Confirmed"
    assert record.contacted_at is not None
    assert await _count(session_factory) == 1


@pytest.mark.asyncio
async def test_separate_ledgers_transition_a_pending_row_once(session_factory):
    request_id, donor_id = await _seed_pair(session_factory)
    first = ConfirmationLedger(session_factory)
    second = ConfirmationLedger(session_factory)
    await first.mark_contacted(request_id, donor_id)

    results = await asyncio.gather(
        first.record_confirmation(request_id, donor_id, message="yes"),
        second.record_confirmation(request_id, donor_id, message="yes too"),
    )

    assert sorted(result.transitioned_to_confirmed for result in results) == [False, True]
    assert all(result.is_new_record is False for result in results)
    rows = await _rows(session_factory, request_id)
    assert [row.status for row in rows] == ["Confirmed"]


class StaleReadConfirmationRepository(ConfirmationRepository):
    """Returns the row as read, after another process has already confirmed it."""

    def __init__(self, session_factory) -> None:
        super().__init__()
        self._session_factory = session_factory

    async def get_by_key(self, session, request_id, donor_id, **kwargs):
        stale = await super().get_by_key(session, request_id, donor_id, **kwargs)
        async with session_scope(self._session_factory) as other:
            row = await super().get_by_key(other, request_id, donor_id)
            row.status = "Confirmed"
        return stale


@pytest.mark.asyncio
async def test_confirmation_committed_elsewhere_is_not_a_second_transition(session_factory):
    request_id, donor_id = await _seed_pair(session_factory)
    await ConfirmationLedger(session_factory).mark_contacted(request_id, donor_id)
    ledger = ConfirmationLedger(
        session_factory, repository=StaleReadConfirmationRepository(session_factory)
    )

    result = await ledger.record_confirmation(request_id, donor_id, message="yes")

    assert result.is_new_record is False
    assert result.transitioned_to_confirmed is False
    assert result.confirmation.status == "Confirmed"
