"""Periodic inbox poller feeding donor replies into the confirmation ledger.

A cycle walks ``Idle -> Connecting -> Fetching -> ProcessingMessage* ->
Disconnected -> Idle``. One bad message never aborts the batch, and a
connection failure just ends the cycle; the next tick retries.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Callable

from config.email import EMAIL_LOOKBACK_HOURS, EMAIL_POLL_INTERVAL_SECONDS
from core.exceptions import MailboxError
from infrastructure.mail import InboundMailbox

from ..schemas.internal import PollCycleReport
from .processor import ReplyOutcome, ReplyProcessor

logger = logging.getLogger(__name__)


class PollerState(str, Enum):
    IDLE = "Idle"
    CONNECTING = "Connecting"
    FETCHING = "Fetching"
    PROCESSING_MESSAGE = "ProcessingMessage"
    DISCONNECTED = "Disconnected"


class InboundReplyPoller:
    """Own the long-lived polling task and its stop signal."""

    def __init__(
        self,
        mailbox: InboundMailbox,
        processor: ReplyProcessor,
        *,
        interval_seconds: float = EMAIL_POLL_INTERVAL_SECONDS,
        lookback_hours: float = EMAIL_LOOKBACK_HOURS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._mailbox = mailbox
        self._processor = processor
        self._interval = interval_seconds
        self._lookback = timedelta(hours=lookback_hours)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.state = PollerState.IDLE
        self.last_successful_poll: datetime | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def request_stop(self) -> None:
        """Ask the loop to finish; an in-flight cycle stops before its next message."""

        self._stop_event.set()

    async def poll_once(self) -> PollCycleReport:
        """Run a single cycle and return its counters."""

        report = PollCycleReport()
        if not self._mailbox.is_configured:
            logger.warning("Inbound mailbox credentials missing; skipping poll")
            return report

        cycle_started = self._clock()
        window_start = cycle_started - self._lookback
        since = window_start
        if self.last_successful_poll is not None:
            since = max(self.last_successful_poll, window_start)

        self.state = PollerState.CONNECTING
        try:
            await self._mailbox.connect()
        except MailboxError as exc:
            logger.error("Cannot connect to inbound mailbox", extra={"error": str(exc), "stage": exc.stage})
            self.state = PollerState.IDLE
            return report

        try:
            self.state = PollerState.FETCHING
            refs = await self._mailbox.list_unseen_since(since)
            report.fetched = len(refs)

            interrupted = False
            for index, ref in enumerate(refs):
                if self._stop_event.is_set():
                    interrupted = True
                    logger.info(
                        "Stop requested; leaving remaining messages for later",
                        extra={"remaining": len(refs) - index},
                    )
                    break
                self.state = PollerState.PROCESSING_MESSAGE
                await self._process_ref(ref, report)

            # Unseen leftovers must stay inside the next search window
            if report.failed or interrupted:
                logger.info(
                    "Keeping poll cursor so unfinished messages are searched again",
                    extra={"failed": report.failed, "interrupted": interrupted},
                )
            else:
                self.last_successful_poll = cycle_started
        except MailboxError as exc:
            logger.error("Inbound mailbox error during poll", extra={"error": str(exc), "stage": exc.stage})
        finally:
            self.state = PollerState.DISCONNECTED
            await self._mailbox.disconnect()
            self.state = PollerState.IDLE

        logger.info(
            "Inbox poll finished",
            extra={
                "fetched": report.fetched,
                "confirmed": report.confirmed,
                "declined": report.declined,
                "skipped": report.skipped,
                "failed": report.failed,
            },
        )
        return report

    async def _process_ref(self, ref: str, report: PollCycleReport) -> None:
        try:
            message = await self._mailbox.fetch(ref)
            outcome = await self._processor.process(message)
        except Exception:
            logger.exception("Failed to process inbound message", extra={"message_ref": ref})
            report.failed += 1
            return

        if outcome is ReplyOutcome.CONFIRMED:
            report.confirmed += 1
            try:
                await self._mailbox.mark_seen(ref)
            except MailboxError as exc:
                logger.warning(
                    "Confirmation recorded but message not marked seen",
                    extra={"message_ref": ref, "error": str(exc)},
                )
        elif outcome is ReplyOutcome.DECLINED:
            report.declined += 1
        elif outcome is ReplyOutcome.FAILED:
            report.failed += 1
        else:
            report.skipped += 1

    async def run(self) -> None:
        """Poll until :meth:`stop` is called."""

        logger.info("Inbound reply poller started", extra={"interval_seconds": self._interval})

        while not self._stop_event.is_set():
            try:
                await self.poll_once()
            except Exception:
                logger.exception("Unexpected error in inbox poll cycle")
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                pass

        logger.info("Inbound reply poller stopped")

    def start(self) -> asyncio.Task[None]:
        if self._task is not None and not self._task.done():
            return self._task
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self.run(), name="inbound-reply-poller")
        return self._task

    async def stop(self, timeout: float = 10.0) -> None:
        """Signal the loop to finish and wait for the in-flight cycle."""

        self.request_stop()
        task, self._task = self._task, None
        if task is None:
            return
        try:
            await asyncio.wait_for(task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Inbound reply poller did not stop in time; cancelled")


__all__ = ["InboundReplyPoller", "PollerState"]
