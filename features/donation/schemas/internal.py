"""Internal result models returned by the donation service layer."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class ConfirmationRecord(BaseModel):
    """Column snapshot of a ``donor_confirmations`` row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    request_id: int
    donor_id: int
    status: str
    message: str | None = None
    confirmed_at: datetime
    contacted_at: datetime | None = None
    admin_notes: str | None = None


@dataclass(slots=True)
class LedgerResult:
    """Outcome of one ledger write.

    ``transitioned_to_confirmed`` is true only for the write that moved the
    pair into Confirmed; it is the sole trigger for requester notification.
    """

    is_new_record: bool
    transitioned_to_confirmed: bool
    confirmation: ConfirmationRecord


@dataclass(slots=True)
class PollCycleReport:
    """Counters for one inbox poll cycle."""

    fetched: int = 0
    confirmed: int = 0
    declined: int = 0
    skipped: int = 0
    failed: int = 0


class DonorRequestRecord(BaseModel):
    """Donation request as exposed to API consumers."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_name: str
    blood_type_id: int
    blood_type: str | None = Field(default=None, description="Blood group label, e.g. O-")
    location_id: int
    location: str | None = Field(default=None, description="District name")
    urgency_level: str
    contact_number: str
    hospital_name: str | None = None
    additional_notes: str | None = None
    requested_by_user_id: int | None = None
    requester_email: str | None = None
    status: str
    created_at: datetime
    completed_at: datetime | None = None


class MatchedDonor(BaseModel):
    """Donor entry in a matching list with identity hiding applied."""

    donor_id: int
    display_name: str
    email: str | None = None
    phone_number: str | None = None
    blood_type: str | None = None
    location: str | None = None
    is_identity_hidden: bool = False
    last_donation_date: date | None = None
    age: int | None = None
    gender: str | None = None


class ConfirmationView(ConfirmationRecord):
    """Confirmation row joined with the donor's display details."""

    donor_name: str
    donor_email: str | None = None
    donor_phone: str | None = None
    is_identity_hidden: bool = False


class SendFailureItem(BaseModel):
    """Why a targeted send did not reach one donor."""

    donor_id: int
    reason: str


class SendOutcome(BaseModel):
    """Per-recipient result of an operator-targeted send."""

    success_count: int = 0
    fail_count: int = 0
    failures: list[SendFailureItem] = Field(default_factory=list)

    def record_failure(self, donor_id: int, reason: str) -> None:
        self.fail_count += 1
        self.failures.append(SendFailureItem(donor_id=donor_id, reason=reason))


class ReferenceItem(BaseModel):
    id: int
    name: str


class ReferenceData(BaseModel):
    blood_types: list[ReferenceItem] = Field(default_factory=list)
    locations: list[ReferenceItem] = Field(default_factory=list)


__all__ = [
    "ConfirmationRecord",
    "ConfirmationView",
    "DonorRequestRecord",
    "LedgerResult",
    "MatchedDonor",
    "PollCycleReport",
    "ReferenceData",
    "ReferenceItem",
    "SendFailureItem",
    "SendOutcome",
]
