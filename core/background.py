"""Detached background work for fire-and-forget side effects.

Notification fan-out and requester emails must never block or fail the HTTP
handler that triggers them. Handlers hand a coroutine to
:class:`BackgroundTaskRunner`, which keeps a strong reference to the task,
caps concurrency with a semaphore and logs any exception raised inside the
unit of work. Callers never await the returned task.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


class BackgroundTaskRunner:
    """Spawn, track and drain detached asyncio tasks."""

    def __init__(self, *, max_concurrency: int = 10) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._max_concurrency = max_concurrency
        self._semaphore: asyncio.Semaphore | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of spawned tasks that have not finished yet."""

        return len(self._tasks)

    def spawn(self, work: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[None]:
        """Schedule ``work`` without awaiting it and return the tracking task."""

        task = asyncio.create_task(self._run(work, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Background task scheduled", extra={"task_name": name})
        return task

    async def _run(self, work: Coroutine[Any, Any, Any], name: str) -> None:
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self._max_concurrency)

        async with self._semaphore:
            try:
                await work
            except asyncio.CancelledError:
                logger.warning("Background task cancelled", extra={"task_name": name})
                raise
            except Exception:
                logger.exception("Background task failed", extra={"task_name": name})

    async def drain(self, timeout: float | None = None) -> int:
        """Wait for in-flight tasks; cancel whatever is left after ``timeout``.

        Returns the number of tasks that had to be cancelled.
        """

        if not self._tasks:
            return 0

        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                "Cancelled background tasks still running at shutdown",
                extra={"cancelled": len(pending), "completed": len(done)},
            )
        return len(pending)


__all__ = ["BackgroundTaskRunner"]
