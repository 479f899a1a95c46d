"""Dependency wiring for donation FastAPI endpoints and background workers.

The ledger holds the per-pair write locks, so the service graph is built
once per process and shared by every request and by the reply poller.
"""

from __future__ import annotations

import logging
from typing import AsyncIterator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config.donation import BACKGROUND_TASK_CONCURRENCY, SMS_ENABLED
from core.background import BackgroundTaskRunner
from core.exceptions import ConfigurationError
from infrastructure.db.engines import AsyncSessionFactory, SessionDependency
from infrastructure.db.sessions import get_session_dependency, require_donation_session_factory
from infrastructure.mail import ImapMailbox, SmtpMailer

from .channels import EmailChannel, SmsChannel
from .dispatcher import NotificationDispatcher
from .inbound import InboundReplyPoller, ReplyProcessor
from .ledger import ConfirmationLedger
from .repositories import DonationRepositoryCollection, build_repositories
from .requester_notifier import RequesterNotifier
from .service import DonationService

logger = logging.getLogger(__name__)

_session_dependency: SessionDependency | None = None
_background_runner: BackgroundTaskRunner | None = None
_donation_service: DonationService | None = None


def _require_session_factory() -> AsyncSessionFactory:
    try:
        return require_donation_session_factory()
    except ConfigurationError as exc:
        logger.error("DONATION_DB_URL is missing; cannot create donation sessions")
        raise ConfigurationError(
            "DONATION_DB_URL must be configured before accessing donation endpoints",
            key="DONATION_DB_URL",
        ) from exc


def _resolve_session_dependency() -> SessionDependency:
    """Return the cached FastAPI session dependency, initialising it on demand."""

    global _session_dependency

    if _session_dependency is None:
        logger.debug("Initialising donation session dependency")
        _session_dependency = get_session_dependency(_require_session_factory())

    return _session_dependency


async def get_donation_session() -> AsyncIterator[AsyncSession]:
    """Yield an :class:`AsyncSession` for donation feature operations."""

    dependency = _resolve_session_dependency()
    async for session in dependency():
        yield session


def get_background_runner() -> BackgroundTaskRunner:
    global _background_runner

    if _background_runner is None:
        _background_runner = BackgroundTaskRunner(max_concurrency=BACKGROUND_TASK_CONCURRENCY)
    return _background_runner


def get_donation_repositories() -> DonationRepositoryCollection:
    """Provide repository instances for donation feature dependencies."""

    return build_repositories()


def build_donation_service(
    session_factory: AsyncSessionFactory,
    *,
    mailer: SmtpMailer | None = None,
    runner: BackgroundTaskRunner | None = None,
    repositories: DonationRepositoryCollection | None = None,
) -> DonationService:
    """Assemble the service with its ledger, dispatcher and notifier."""

    mailer = mailer or SmtpMailer()
    if not mailer.is_configured:
        logger.warning("SMTP is not configured; donor and requester emails will not be sent")

    ledger = ConfirmationLedger(session_factory)
    email_channel = EmailChannel(mailer)
    dispatcher = NotificationDispatcher(
        session_factory,
        channels=[email_channel, SmsChannel(enabled=SMS_ENABLED)],
        ledger=ledger,
        targeted_channel=email_channel,
    )
    return DonationService(
        repositories or build_repositories(),
        ledger=ledger,
        dispatcher=dispatcher,
        requester_notifier=RequesterNotifier(mailer),
        runner=runner or get_background_runner(),
    )


def get_donation_service(
    repositories: DonationRepositoryCollection = Depends(get_donation_repositories),
) -> DonationService:
    """Resolve the process-wide :class:`DonationService`."""

    global _donation_service

    if _donation_service is None:
        _donation_service = build_donation_service(
            _require_session_factory(), repositories=repositories
        )
    return _donation_service


def build_reply_poller(service: DonationService | None = None) -> InboundReplyPoller:
    """Create the inbox poller sharing the request-handling service graph."""

    session_factory = _require_session_factory()
    service = service or get_donation_service(get_donation_repositories())
    processor = ReplyProcessor(session_factory, service)
    return InboundReplyPoller(ImapMailbox(), processor)


__all__ = [
    "get_donation_session",
    "get_background_runner",
    "get_donation_repositories",
    "get_donation_service",
    "build_donation_service",
    "build_reply_poller",
]
