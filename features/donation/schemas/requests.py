"""External request models for the donation HTTP surface."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..types import ConfirmationStatus, RequestStatus, UrgencyLevel


class CreateDonationRequest(BaseModel):
    """Body accepted when a hospital or administrator opens a request.

    Blank text fields are accepted here and rejected by the service so that
    every violation is reported together.
    """

    model_config = ConfigDict(extra="forbid")

    patient_name: str = Field(default="", max_length=200)
    blood_type_id: int = Field(..., description="Identifier from the blood type reference table")
    location_id: int = Field(..., description="Identifier from the location reference table")
    urgency_level: UrgencyLevel = Field(default=UrgencyLevel.NORMAL)
    contact_number: str = Field(default="", max_length=20)
    hospital_name: str | None = Field(default=None, max_length=100)
    additional_notes: str | None = Field(default=None, max_length=500)
    requested_by_user_id: int | None = Field(default=None)
    requester_email: str | None = Field(
        default=None,
        max_length=255,
        description="Address that receives donor contact details once a donor confirms",
    )


class UpdateRequestStatus(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: RequestStatus


class NotifySelectedDonorsRequest(BaseModel):
    """Operator-selected donors to email about a request."""

    model_config = ConfigDict(extra="forbid")

    donor_ids: list[int] = Field(..., min_length=1, max_length=500)


class RecordConfirmationRequest(BaseModel):
    """A donor's answer recorded through the API."""

    model_config = ConfigDict(extra="forbid")

    donor_id: int
    status: ConfirmationStatus = Field(default=ConfirmationStatus.CONFIRMED)
    message: str | None = Field(
        default=None,
        description="Free-text note from the donor; stored truncated to 500 characters",
    )
    admin_notes: str | None = Field(default=None, max_length=200)


__all__ = [
    "CreateDonationRequest",
    "UpdateRequestStatus",
    "NotifySelectedDonorsRequest",
    "RecordConfirmationRequest",
]
