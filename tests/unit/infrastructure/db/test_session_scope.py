"""Tests for the ``session_scope`` context manager and engine helpers."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConfigurationError, DatabaseError
from infrastructure.db import AsyncSessionFactory, create_database_engine, session_scope


pytestmark = pytest.mark.anyio("asyncio")


class _SentinelError(Exception):
    """Custom exception used to exercise rollback paths."""


def _mock_session() -> MagicMock:
    session = MagicMock(spec=AsyncSession)
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


async def test_session_scope_commits_on_success() -> None:
    """The context manager commits and closes the session on success."""

    session = _mock_session()
    factory: AsyncSessionFactory = MagicMock(return_value=session)

    async with session_scope(factory) as provided:
        assert provided is session

    session.commit.assert_awaited_once_with()
    session.rollback.assert_not_awaited()
    session.close.assert_awaited_once_with()


async def test_session_scope_rolls_back_and_reraises() -> None:
    """The context manager rolls back and closes the session on error."""

    session = _mock_session()
    factory: AsyncSessionFactory = MagicMock(return_value=session)

    with pytest.raises(_SentinelError):
        async with session_scope(factory):
            raise _SentinelError()

    session.commit.assert_not_called()
    session.rollback.assert_awaited()
    session.close.assert_awaited_once_with()


async def test_session_scope_wraps_sqlalchemy_errors() -> None:
    session = _mock_session()
    session.commit.side_effect = OperationalError("COMMIT", {}, Exception("disk I/O error"))
    factory: AsyncSessionFactory = MagicMock(return_value=session)

    with pytest.raises(DatabaseError) as exc_info:
        async with session_scope(factory):
            pass

    assert exc_info.value.operation == "transaction"
    session.rollback.assert_awaited_once_with()
    session.close.assert_awaited_once_with()


async def test_create_database_engine_supports_sqlite(tmp_path) -> None:
    engine = create_database_engine(f"sqlite+aiosqlite:///{tmp_path / 'local.db'}")
    try:
        assert engine.dialect.name == "sqlite"
    finally:
        await engine.dispose()


def test_create_database_engine_requires_url() -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        create_database_engine("", url_key="DONATION_DB_URL")

    assert exc_info.value.key == "DONATION_DB_URL"
