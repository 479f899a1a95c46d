"""One-time email to the requester once a donor confirms."""

from __future__ import annotations

import logging

from infrastructure.mail import OutboundMailer

from .db_models import DonorProfile, DonorRequest
from .email_templates import requester_confirmation_body, requester_confirmation_subject

logger = logging.getLogger(__name__)


class RequesterNotifier:
    def __init__(self, mailer: OutboundMailer) -> None:
        self._mailer = mailer

    async def notify_requester_of_confirmation(
        self, request: DonorRequest, donor: DonorProfile
    ) -> bool:
        """Send the donor's contact card, honouring identity hiding.

        Callers invoke this only for the write that moved the pair into
        Confirmed. Returns ``False`` when there is nobody to tell or the
        relay refused the message.
        """

        recipient = (request.requester_email or "").strip()
        if not recipient:
            logger.info(
                "Request has no requester email; skipping confirmation notice",
                extra={"request_id": request.id, "donor_id": donor.donor_id},
            )
            return False

        delivered = await self._mailer.send(
            recipient,
            requester_confirmation_subject(request),
            requester_confirmation_body(request, donor),
        )
        if delivered:
            logger.info(
                "Requester notified of donor confirmation",
                extra={"request_id": request.id, "donor_id": donor.donor_id},
            )
        else:
            logger.warning(
                "Requester confirmation notice was not delivered",
                extra={"request_id": request.id, "donor_id": donor.donor_id},
            )
        return delivered


__all__ = ["RequesterNotifier"]
