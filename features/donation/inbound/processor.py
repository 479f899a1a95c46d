"""Turn one inbound email into at most one ledger write."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import async_sessionmaker

from core.exceptions import DatabaseError
from infrastructure.db.sessions import session_scope
from infrastructure.mail import InboundMessage

from ..repositories import DonorDirectoryRepository, DonorRequestRepository
from ..types import ConfirmationStatus, ReplyIntent
from .classifier import classify_reply, extract_donor_id, extract_request_id, reply_text

if TYPE_CHECKING:
    from ..service import DonationService

logger = logging.getLogger(__name__)


class ReplyOutcome(str, Enum):
    """What happened to a processed message; only CONFIRMED marks it seen."""

    CONFIRMED = "confirmed"
    DECLINED = "declined"
    SKIPPED = "skipped"
    FAILED = "failed"


class ReplyProcessor:
    """Correlate, classify and record a donor's email reply."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        service: "DonationService",
        *,
        requests_repo: DonorRequestRepository | None = None,
        directory: DonorDirectoryRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._service = service
        self._requests_repo = requests_repo or DonorRequestRepository()
        self._directory = directory or DonorDirectoryRepository()

    async def process(self, message: InboundMessage) -> ReplyOutcome:
        log_extra = {"message_ref": message.ref, "sender": message.sender}

        request_id = extract_request_id(message)
        if request_id is None:
            logger.warning("Reply has no request id; leaving unseen", extra=log_extra)
            return ReplyOutcome.SKIPPED
        log_extra["request_id"] = request_id

        body = reply_text(message)
        intent = classify_reply(body)
        if intent is ReplyIntent.DECLINED:
            logger.info("Reply declines the request; nothing recorded", extra=log_extra)
            return ReplyOutcome.DECLINED
        if intent is ReplyIntent.UNCLASSIFIABLE:
            logger.warning("Reply intent unclear; leaving unseen", extra=log_extra)
            return ReplyOutcome.SKIPPED

        async with session_scope(self._session_factory) as session:
            request = await self._requests_repo.get(session, request_id)
            donor = None
            if request is not None:
                donor_id = extract_donor_id(message)
                if donor_id is not None:
                    donor = await self._directory.get_profile(session, donor_id)
                else:
                    donor = await self._directory.find_donor_for_reply(
                        session, message.sender, request.blood_type_id, request.location_id
                    )

        if request is None:
            logger.warning("Reply references an unknown request", extra=log_extra)
            return ReplyOutcome.SKIPPED
        if donor is None:
            logger.warning("Could not resolve a unique donor for reply", extra=log_extra)
            return ReplyOutcome.SKIPPED

        try:
            await self._service.apply_confirmation(
                request, donor, status=ConfirmationStatus.CONFIRMED, message=body
            )
        except DatabaseError:
            logger.exception(
                "Failed to record emailed confirmation; will retry next cycle",
                extra={**log_extra, "donor_id": donor.donor_id},
            )
            return ReplyOutcome.FAILED

        logger.info(
            "Emailed confirmation recorded", extra={**log_extra, "donor_id": donor.donor_id}
        )
        return ReplyOutcome.CONFIRMED


__all__ = ["ReplyOutcome", "ReplyProcessor"]
