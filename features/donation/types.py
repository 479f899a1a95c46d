"""Enumerations and typed dictionaries shared across the donation feature."""

from __future__ import annotations

from enum import Enum
from typing import TypedDict


class UrgencyLevel(str, Enum):
    """How quickly the requester needs a donor."""

    CRITICAL = "Critical"
    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"


class RequestStatus(str, Enum):
    """Lifecycle state of a donation request."""

    PENDING = "Pending"
    APPROVED = "Approved"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class ConfirmationStatus(str, Enum):
    """A donor's answer to a specific request."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    DECLINED = "Declined"


class ReplyIntent(str, Enum):
    """Outcome of classifying an inbound email reply."""

    CONFIRMED = "Confirmed"
    DECLINED = "Declined"
    UNCLASSIFIABLE = "Unclassifiable"


# Completed and Cancelled are terminal
ALLOWED_STATUS_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.PENDING: frozenset(
        {RequestStatus.APPROVED, RequestStatus.COMPLETED, RequestStatus.CANCELLED}
    ),
    RequestStatus.APPROVED: frozenset({RequestStatus.COMPLETED, RequestStatus.CANCELLED}),
    RequestStatus.COMPLETED: frozenset(),
    RequestStatus.CANCELLED: frozenset(),
}


class ReferenceRow(TypedDict):
    """Seed row for a reference table."""

    id: int
    name: str


__all__ = [
    "UrgencyLevel",
    "RequestStatus",
    "ConfirmationStatus",
    "ReplyIntent",
    "ALLOWED_STATUS_TRANSITIONS",
    "ReferenceRow",
]
