"""Tests for the detached background task runner."""

from __future__ import annotations

import asyncio
import logging

import pytest

from core.background import BackgroundTaskRunner

pytestmark = pytest.mark.anyio("asyncio")


async def test_spawned_work_runs_without_being_awaited() -> None:
    runner = BackgroundTaskRunner()
    done = asyncio.Event()

    async def work() -> None:
        done.set()

    runner.spawn(work(), name="set-event")
    assert runner.pending == 1

    assert await runner.drain(timeout=1) == 0
    assert done.is_set()
    assert runner.pending == 0


async def test_failures_are_logged_not_raised(caplog) -> None:
    runner = BackgroundTaskRunner()

    async def explode() -> None:
        raise RuntimeError("smtp down")

    with caplog.at_level(logging.ERROR, logger="core.background"):
        task = runner.spawn(explode(), name="explode")
        await runner.drain(timeout=1)

    assert task.exception() is None
    assert any(record.getMessage() == "Background task failed" for record in caplog.records)


async def test_concurrency_is_capped() -> None:
    runner = BackgroundTaskRunner(max_concurrency=2)
    running = 0
    peak = 0

    async def work() -> None:
        nonlocal running, peak
        running += 1
        peak = max(peak, running)
        await asyncio.sleep(0.01)
        running -= 1

    for index in range(6):
        runner.spawn(work(), name=f"work-{index}")
    await runner.drain(timeout=2)

    assert peak == 2


async def test_drain_cancels_stragglers() -> None:
    runner = BackgroundTaskRunner()

    async def hang() -> None:
        await asyncio.sleep(60)

    task = runner.spawn(hang(), name="hang")

    assert await runner.drain(timeout=0.01) == 1
    assert task.cancelled()


def test_rejects_zero_concurrency() -> None:
    with pytest.raises(ValueError):
        BackgroundTaskRunner(max_concurrency=0)
