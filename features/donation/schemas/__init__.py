"""Schema exports for the donation feature."""

from __future__ import annotations

from .internal import (
    ConfirmationRecord,
    ConfirmationView,
    DonorRequestRecord,
    LedgerResult,
    MatchedDonor,
    PollCycleReport,
    ReferenceData,
    ReferenceItem,
    SendFailureItem,
    SendOutcome,
)
from .requests import (
    CreateDonationRequest,
    NotifySelectedDonorsRequest,
    RecordConfirmationRequest,
    UpdateRequestStatus,
)
from .responses import (
    ConfirmationListEnvelope,
    CreatedRequestData,
    CreatedRequestEnvelope,
    DonationErrorResponse,
    DonorRequestEnvelope,
    MatchingDonorsEnvelope,
    RecordedConfirmationData,
    RecordedConfirmationEnvelope,
    ReferenceDataEnvelope,
    SendOutcomeEnvelope,
)

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
    "CreateDonationRequest",
    "NotifySelectedDonorsRequest",
    "RecordConfirmationRequest",
    "UpdateRequestStatus",
    "ConfirmationListEnvelope",
    "CreatedRequestData",
    "CreatedRequestEnvelope",
    "DonationErrorResponse",
    "DonorRequestEnvelope",
    "MatchingDonorsEnvelope",
    "RecordedConfirmationData",
    "RecordedConfirmationEnvelope",
    "ReferenceDataEnvelope",
    "SendOutcomeEnvelope",
]
