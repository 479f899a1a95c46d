"""Fixtures for donation feature tests backed by a throwaway SQLite file."""

from __future__ import annotations

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from core.background import BackgroundTaskRunner
from features.donation.dependencies import build_donation_service
from features.donation.reference_data import seed_reference_data
from features.donation.repositories import DonorRequestRepository
from infrastructure.db import get_session_factory, prepare_database, session_scope
from tests.utils.donation_factories import RecordingMailer


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'donation.db'}")
    await prepare_database(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    factory = get_session_factory(engine)
    async with session_scope(factory) as session:
        await seed_reference_data(session)
    return factory


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest_asyncio.fixture
async def runner():
    runner = BackgroundTaskRunner(max_concurrency=4)
    try:
        yield runner
    finally:
        await runner.drain(timeout=5)


@pytest.fixture
def service(session_factory, mailer, runner):
    return build_donation_service(session_factory, mailer=mailer, runner=runner)


@pytest.fixture
def load_request(session_factory):
    """Reload a request with its relationships eagerly populated."""

    async def _load(request_id: int):
        async with session_scope(session_factory) as session:
            return await DonorRequestRepository().get(session, request_id)

    return _load
