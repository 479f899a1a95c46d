from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from features.donation.inbound import InboundReplyPoller, PollerState, ReplyOutcome
from tests.utils.donation_factories import StubMailbox, reply

NOW = datetime(2026, 10, 18, 9, 30, tzinfo=UTC)


class StubProcessor:
    def __init__(self, outcomes: dict[str, ReplyOutcome]) -> None:
        self.outcomes = outcomes
        self.processed: list[str] = []
        self.on_processed = None

    async def process(self, message):
        self.processed.append(message.ref)
        if self.on_processed is not None:
            self.on_processed(message.ref)
        outcome = self.outcomes[message.ref]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _poller(mailbox, processor, **kwargs) -> InboundReplyPoller:
    kwargs.setdefault("clock", lambda: NOW)
    return InboundReplyPoller(mailbox, processor, interval_seconds=3600, lookback_hours=24, **kwargs)


@pytest.mark.asyncio
async def test_only_confirmed_messages_are_marked_seen():
    mailbox = StubMailbox()
    for ref in ("1", "2", "3", "4"):
        mailbox.add(reply(ref, "body"))
    processor = StubProcessor(
        {
            "1": ReplyOutcome.CONFIRMED,
            "2": ReplyOutcome.DECLINED,
            "3": ReplyOutcome.SKIPPED,
            "4": ReplyOutcome.FAILED,
        }
    )
    poller = _poller(mailbox, processor)

    report = await poller.poll_once()

    assert mailbox.seen == {"1"}
    assert (report.fetched, report.confirmed, report.declined, report.skipped, report.failed) == (
        4,
        1,
        1,
        1,
        1,
    )
    assert mailbox.disconnects == 1
    assert poller.state is PollerState.IDLE


@pytest.mark.asyncio
async def test_one_bad_message_does_not_abort_the_batch():
    mailbox = StubMailbox(fail_fetch_for={"1"})
    mailbox.add(reply("1", "corrupt"))
    mailbox.add(reply("2", "yes"))
    mailbox.add(reply("3", "yes"))
    processor = StubProcessor(
        {"2": RuntimeError("boom"), "3": ReplyOutcome.CONFIRMED}
    )

    report = await _poller(mailbox, processor).poll_once()

    assert processor.processed == ["2", "3"]
    assert report.failed == 2
    assert report.confirmed == 1
    assert mailbox.seen == {"3"}


@pytest.mark.asyncio
async def test_lookback_window_then_last_successful_poll():
    mailbox = StubMailbox()
    times = iter([NOW, NOW + timedelta(minutes=5)])
    poller = _poller(mailbox, StubProcessor({}), clock=lambda: next(times))

    await poller.poll_once()
    await poller.poll_once()

    assert mailbox.searches == [NOW - timedelta(hours=24), NOW]
    assert poller.last_successful_poll == NOW + timedelta(minutes=5)


@pytest.mark.asyncio
async def test_connection_failure_ends_the_cycle_quietly():
    mailbox = StubMailbox(fail_connect=True)
    mailbox.add(reply("1", "yes"))
    poller = _poller(mailbox, StubProcessor({"1": ReplyOutcome.CONFIRMED}))

    report = await poller.poll_once()

    assert report.fetched == 0
    assert mailbox.searches == []
    assert poller.last_successful_poll is None
    assert poller.state is PollerState.IDLE


@pytest.mark.asyncio
async def test_unconfigured_mailbox_is_never_contacted():
    mailbox = StubMailbox(is_configured=False)
    mailbox.add(reply("1", "yes"))

    report = await _poller(mailbox, StubProcessor({})).poll_once()

    assert report.fetched == 0
    assert mailbox.connected is False
    assert mailbox.disconnects == 0


@pytest.mark.asyncio
async def test_start_and_stop_the_polling_loop():
    mailbox = StubMailbox()
    mailbox.add(reply("1", "yes"))
    poller = _poller(mailbox, StubProcessor({"1": ReplyOutcome.CONFIRMED}))

    poller.start()
    for _ in range(50):
        if mailbox.seen:
            break
        await asyncio.sleep(0)
    assert poller.is_running is True

    await poller.stop(timeout=1)

    assert mailbox.seen == {"1"}
    assert poller.is_running is False


@pytest.mark.asyncio
async def test_stop_is_observed_between_messages():
    mailbox = StubMailbox()
    for ref in ("1", "2", "3"):
        mailbox.add(reply(ref, "yes"))
    processor = StubProcessor({ref: ReplyOutcome.CONFIRMED for ref in ("1", "2", "3")})
    poller = _poller(mailbox, processor)
    processor.on_processed = lambda ref: poller.request_stop()

    report = await poller.poll_once()

    assert processor.processed == ["1"]
    assert mailbox.seen == {"1"}
    assert (report.fetched, report.confirmed) == (3, 1)
    assert mailbox.disconnects == 1
    assert poller.last_successful_poll is None


@pytest.mark.asyncio
async def test_failed_message_keeps_the_search_window_open():
    mailbox = StubMailbox()
    mailbox.add(reply("1", "yes"))
    times = iter([NOW, NOW + timedelta(minutes=5), NOW + timedelta(minutes=10)])
    outcomes = {"1": ReplyOutcome.FAILED}
    poller = _poller(mailbox, StubProcessor(outcomes), clock=lambda: next(times))

    await poller.poll_once()
    assert poller.last_successful_poll is None

    outcomes["1"] = ReplyOutcome.CONFIRMED
    await poller.poll_once()
    await poller.poll_once()

    assert mailbox.searches == [
        NOW - timedelta(hours=24),
        NOW + timedelta(minutes=5) - timedelta(hours=24),
        NOW + timedelta(minutes=5),
    ]
    assert mailbox.seen == {"1"}


@pytest.mark.asyncio
async def test_stale_cursor_never_widens_past_the_lookback_window():
    mailbox = StubMailbox()
    poller = _poller(mailbox, StubProcessor({}), clock=lambda: NOW)
    poller.last_successful_poll = NOW - timedelta(days=3)

    await poller.poll_once()

    assert mailbox.searches == [NOW - timedelta(hours=24)]
