"""Builders and stubs shared by the donation test suites."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from features.donation.db_models import Donor, DonorProfile, DonorRequest
from infrastructure.mail import InboundMessage

O_NEGATIVE = 8
A_POSITIVE = 1
BEIRUT = 1
TRIPOLI = 11


async def add_donor(
    session: AsyncSession,
    donor_id: int,
    *,
    first_name: str = "Rami",
    last_name: str | None = None,
    email: str | None = None,
    phone_number: str | None = "+961 70 000 000",
    blood_type_id: int = O_NEGATIVE,
    location_id: int = BEIRUT,
    is_available: bool = True,
    is_healthy_for_donation: bool = True,
    is_identity_hidden: bool = False,
) -> DonorProfile:
    donor = Donor(
        id=donor_id,
        first_name=first_name,
        last_name=last_name or f"Haddad{donor_id}",
        email=email if email is not None else f"donor{donor_id}@example.com",
        phone_number=phone_number,
    )
    profile = DonorProfile(
        donor_id=donor_id,
        blood_type_id=blood_type_id,
        location_id=location_id,
        is_available=is_available,
        is_healthy_for_donation=is_healthy_for_donation,
        is_identity_hidden=is_identity_hidden,
    )
    session.add_all([donor, profile])
    await session.flush()
    return profile


async def add_request(
    session: AsyncSession,
    *,
    blood_type_id: int = O_NEGATIVE,
    location_id: int = BEIRUT,
    patient_name: str = "Maya Khoury",
    requester_email: str | None = "ward7@hospital.example",
    status: str = "Pending",
) -> DonorRequest:
    request = DonorRequest(
        patient_name=patient_name,
        blood_type_id=blood_type_id,
        location_id=location_id,
        urgency_level="High",
        contact_number="+961 1 123 456",
        hospital_name="AUBMC",
        requester_email=requester_email,
        status=status,
    )
    session.add(request)
    await session.flush()
    return request


@dataclass
class SentMail:
    to_address: str
    subject: str
    html_body: str
    headers: dict[str, str]


class RecordingMailer:
    """Outbound mailer double that records every message."""

    def __init__(self, *, fail_for: set[str] | None = None) -> None:
        self.sent: list[SentMail] = []
        self.fail_for = fail_for or set()
        self.is_configured = True
        self.from_email = "noreply@bloodconnect.example"

    async def send(
        self,
        to_address: str,
        subject: str,
        html_body: str,
        headers: Mapping[str, str] | None = None,
    ) -> bool:
        if to_address in self.fail_for:
            return False
        self.sent.append(SentMail(to_address, subject, html_body, dict(headers or {})))
        return True

    def sent_to(self, address: str) -> list[SentMail]:
        return [mail for mail in self.sent if mail.to_address == address]


@dataclass
class StubMailbox:
    """In-memory inbox implementing the inbound mailbox protocol."""

    messages: dict[str, InboundMessage] = field(default_factory=dict)
    seen: set[str] = field(default_factory=set)
    is_configured: bool = True
    fail_connect: bool = False
    fail_fetch_for: set[str] = field(default_factory=set)
    connected: bool = False
    searches: list[datetime] = field(default_factory=list)
    disconnects: int = 0

    def add(self, message: InboundMessage) -> None:
        self.messages[message.ref] = message

    async def connect(self) -> None:
        from core.exceptions import MailboxError

        if self.fail_connect:
            raise MailboxError("connection refused", stage="connect")
        self.connected = True

    async def list_unseen_since(self, since: datetime) -> list[str]:
        self.searches.append(since)
        return [ref for ref in self.messages if ref not in self.seen]

    async def fetch(self, ref: str) -> InboundMessage:
        if ref in self.fail_fetch_for:
            raise RuntimeError(f"corrupt message {ref}")
        return self.messages[ref]

    async def mark_seen(self, ref: str) -> None:
        self.seen.add(ref)

    async def disconnect(self) -> None:
        self.connected = False
        self.disconnects += 1


def reply(
    ref: str,
    body: str,
    *,
    sender: str = "donor1@example.com",
    subject: str = "Re: Urgent Blood Donation Request - O- Needed [Request #1]",
    headers: Mapping[str, str] | None = None,
    html_body: str | None = None,
) -> InboundMessage:
    return InboundMessage(
        ref=ref,
        sender=sender,
        subject=subject,
        text_body=body,
        html_body=html_body,
        headers=dict(headers or {}),
    )
