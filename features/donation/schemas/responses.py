"""Response envelope models for the donation HTTP endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from core.pydantic_schemas import ErrorData

from .internal import (
    ConfirmationRecord,
    ConfirmationView,
    DonorRequestRecord,
    MatchedDonor,
    ReferenceData,
    SendOutcome,
)


class DonationResponseBase(BaseModel):
    """Base envelope mirroring the shared API response contract."""

    code: int = Field(..., description="Application-level status code")
    success: bool = Field(..., description="Whether the request succeeded")
    message: str = Field(..., description="Summary suitable for UI display")
    meta: dict[str, Any] | None = Field(default=None)


class CreatedRequestData(BaseModel):
    request_id: int
    status: str


class RecordedConfirmationData(BaseModel):
    is_new_record: bool
    transitioned_to_confirmed: bool
    confirmation: ConfirmationRecord


class CreatedRequestEnvelope(DonationResponseBase):
    data: CreatedRequestData | None = None


class DonorRequestEnvelope(DonationResponseBase):
    data: DonorRequestRecord | None = None


class MatchingDonorsEnvelope(DonationResponseBase):
    data: list[MatchedDonor] | None = None


class SendOutcomeEnvelope(DonationResponseBase):
    data: SendOutcome | None = None


class RecordedConfirmationEnvelope(DonationResponseBase):
    data: RecordedConfirmationData | None = None


class ConfirmationListEnvelope(DonationResponseBase):
    data: list[ConfirmationView] | None = None


class ReferenceDataEnvelope(DonationResponseBase):
    data: ReferenceData | None = None


class DonationErrorResponse(DonationResponseBase):
    """Error envelope returned by donation endpoints."""

    data: ErrorData | None = Field(default=None, description="Structured validation or error details")


__all__ = [
    "DonationResponseBase",
    "CreatedRequestData",
    "RecordedConfirmationData",
    "CreatedRequestEnvelope",
    "DonorRequestEnvelope",
    "MatchingDonorsEnvelope",
    "SendOutcomeEnvelope",
    "RecordedConfirmationEnvelope",
    "ConfirmationListEnvelope",
    "ReferenceDataEnvelope",
    "DonationErrorResponse",
]
