"""Delivery channels used to tell matched donors about a request."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from config.donation import SMS_ENABLED
from config.email import DONOR_ID_HEADER, REQUEST_ID_HEADER
from core.exceptions import DeliveryError
from infrastructure.mail import OutboundMailer

from .db_models import DonorProfile, DonorRequest
from .email_templates import donor_request_body, donor_request_subject, sms_request_text

logger = logging.getLogger(__name__)


@runtime_checkable
class NotificationChannel(Protocol):
    """One way of reaching a donor.

    ``send`` returns ``True`` when the message left the system and ``False``
    when the channel deliberately did nothing; delivery failures raise
    :class:`~core.exceptions.DeliveryError`.
    """

    name: str

    def can_reach(self, donor: DonorProfile) -> bool: ...

    async def send(self, request: DonorRequest, donor: DonorProfile) -> bool: ...


class EmailChannel:
    name = "email"

    def __init__(self, mailer: OutboundMailer) -> None:
        self._mailer = mailer

    def can_reach(self, donor: DonorProfile) -> bool:
        return donor.donor is not None and bool((donor.donor.email or "").strip())

    async def send(self, request: DonorRequest, donor: DonorProfile) -> bool:
        address = donor.donor.email if donor.donor is not None else ""
        headers = {
            REQUEST_ID_HEADER: str(request.id),
            DONOR_ID_HEADER: str(donor.donor_id),
        }
        delivered = await self._mailer.send(
            address,
            donor_request_subject(request),
            donor_request_body(request, donor),
            headers=headers,
        )
        if not delivered:
            raise DeliveryError("Email was not accepted for delivery", recipient=address, channel=self.name)
        return True


class SmsChannel:
    """Logging stand-in for an SMS gateway."""

    name = "sms"

    def __init__(self, *, enabled: bool = SMS_ENABLED) -> None:
        self._enabled = enabled

    def can_reach(self, donor: DonorProfile) -> bool:
        return donor.donor is not None and bool((donor.donor.phone_number or "").strip())

    async def send(self, request: DonorRequest, donor: DonorProfile) -> bool:
        if not self._enabled:
            return False

        logger.info(
            "SMS notification (not sent, no gateway configured)",
            extra={
                "request_id": request.id,
                "donor_id": donor.donor_id,
                "phone_number": donor.donor.phone_number if donor.donor is not None else None,
                "sms_text": sms_request_text(request),
            },
        )
        return True


__all__ = ["NotificationChannel", "EmailChannel", "SmsChannel"]
