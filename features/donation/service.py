"""Service layer orchestrating donation requests, matching and confirmations."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.background import BackgroundTaskRunner
from core.exceptions import NotFoundError, ValidationError

from .db_models import DonorProfile, DonorRequest
from .dispatcher import NotificationDispatcher
from .identity import donor_identity
from .ledger import ConfirmationLedger
from .matching import MatchingEngine
from .repositories import (
    ConfirmationRepository,
    DonationRepositoryCollection,
    DonorDirectoryRepository,
    DonorRequestRepository,
    ReferenceDataRepository,
    build_repositories,
)
from .requester_notifier import RequesterNotifier
from .schemas import (
    ConfirmationView,
    CreateDonationRequest,
    DonorRequestRecord,
    LedgerResult,
    MatchedDonor,
    RecordConfirmationRequest,
    ReferenceData,
    ReferenceItem,
    SendOutcome,
)
from .types import ALLOWED_STATUS_TRANSITIONS, ConfirmationStatus, RequestStatus

logger = logging.getLogger(__name__)

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class DonationService:
    """Provide high-level operations for the donor matching workflow.

    Notification work is handed to the background runner and never awaited
    by the caller; only persisted state is shared with those tasks.
    """

    def __init__(
        self,
        repositories: Optional[DonationRepositoryCollection] = None,
        *,
        ledger: ConfirmationLedger,
        dispatcher: NotificationDispatcher,
        requester_notifier: RequesterNotifier,
        runner: BackgroundTaskRunner,
    ) -> None:
        collection = repositories or build_repositories()
        self._donors = collection.get("donors") or DonorDirectoryRepository()
        self._requests = collection.get("requests") or DonorRequestRepository()
        self._confirmations = collection.get("confirmations") or ConfirmationRepository()
        self._reference = collection.get("reference") or ReferenceDataRepository()
        self._matching = MatchingEngine(self._donors)
        self._ledger = ledger
        self._dispatcher = dispatcher
        self._requester_notifier = requester_notifier
        self._runner = runner

    async def create_request(
        self, session: AsyncSession, payload: CreateDonationRequest
    ) -> DonorRequest:
        """Validate, persist and commit a request, then schedule donor dispatch."""

        await self._validate_new_request(session, payload)

        request = await self._requests.create(
            session,
            patient_name=payload.patient_name.strip(),
            blood_type_id=payload.blood_type_id,
            location_id=payload.location_id,
            urgency_level=payload.urgency_level.value,
            contact_number=payload.contact_number.strip(),
            hospital_name=_blank_to_none(payload.hospital_name),
            additional_notes=_blank_to_none(payload.additional_notes),
            requested_by_user_id=payload.requested_by_user_id,
            requester_email=_blank_to_none(payload.requester_email),
        )
        # The dispatch task reads the request through its own session
        await session.commit()

        self._runner.spawn(
            self._dispatcher.notify_request(request.id),
            name=f"dispatch-request-{request.id}",
        )
        return request

    async def get_request(self, session: AsyncSession, request_id: int) -> DonorRequestRecord:
        request = await self._require_request(session, request_id)
        return _request_record(request)

    async def update_request_status(
        self, session: AsyncSession, request_id: int, status: RequestStatus
    ) -> DonorRequestRecord:
        """Move a request along its lifecycle; Completed and Cancelled are final."""

        request = await self._require_request(session, request_id)
        current = RequestStatus(request.status)
        if status != current and status not in ALLOWED_STATUS_TRANSITIONS[current]:
            raise ValidationError(
                f"Cannot change request status from {current.value} to {status.value}",
                field="status",
            )
        if status == current:
            return _request_record(request)

        completed_at = datetime.now(UTC) if status == RequestStatus.COMPLETED else None
        await self._requests.update_status(session, request, status.value, completed_at=completed_at)
        await session.commit()
        logger.info(
            "Request status updated",
            extra={"request_id": request_id, "from_status": current.value, "to_status": status.value},
        )
        return _request_record(request)

    async def get_matching_donors(
        self, session: AsyncSession, request_id: int
    ) -> list[MatchedDonor]:
        request = await self._require_request(session, request_id)
        donors = await self._matching.match_donors(session, request)
        return [_matched_donor(profile) for profile in donors]

    async def send_to_selected(self, request_id: int, donor_ids: list[int]) -> SendOutcome:
        return await self._dispatcher.send_to_selected_donors(request_id, donor_ids)

    async def record_confirmation(
        self,
        session: AsyncSession,
        request_id: int,
        payload: RecordConfirmationRequest,
    ) -> LedgerResult:
        """Record a donor's answer submitted through the API."""

        request = await self._require_request(session, request_id)
        donor = await self._donors.get_profile(session, payload.donor_id)
        if donor is None:
            raise NotFoundError(f"Donor {payload.donor_id} not found", resource="donor")

        return await self.apply_confirmation(
            request,
            donor,
            status=payload.status,
            message=payload.message,
            admin_notes=payload.admin_notes,
        )

    async def apply_confirmation(
        self,
        request: DonorRequest,
        donor: DonorProfile,
        *,
        status: ConfirmationStatus = ConfirmationStatus.CONFIRMED,
        message: str | None = None,
        admin_notes: str | None = None,
    ) -> LedgerResult:
        """Shared ledger path for API and email confirmations.

        ``request`` and ``donor`` must have their relationships loaded; they
        are handed to a detached task once the write commits.
        """

        result = await self._ledger.record_confirmation(
            request.id,
            donor.donor_id,
            status=status,
            message=message,
            admin_notes=admin_notes,
        )
        if result.transitioned_to_confirmed:
            self._runner.spawn(
                self._requester_notifier.notify_requester_of_confirmation(request, donor),
                name=f"notify-requester-{request.id}-{donor.donor_id}",
            )
        return result

    async def list_confirmations(
        self, session: AsyncSession, request_id: int
    ) -> list[ConfirmationView]:
        await self._require_request(session, request_id)
        confirmations = await self._confirmations.list_for_request(session, request_id)

        views: list[ConfirmationView] = []
        for confirmation in confirmations:
            identity = donor_identity(confirmation.donor_profile)
            views.append(
                ConfirmationView(
                    id=confirmation.id,
                    request_id=confirmation.request_id,
                    donor_id=confirmation.donor_id,
                    status=confirmation.status,
                    message=confirmation.message,
                    confirmed_at=confirmation.confirmed_at,
                    contacted_at=confirmation.contacted_at,
                    admin_notes=confirmation.admin_notes,
                    donor_name=identity.name,
                    donor_email=identity.email,
                    donor_phone=identity.phone_number,
                    is_identity_hidden=identity.is_hidden,
                )
            )
        return views

    async def list_reference_data(self, session: AsyncSession) -> ReferenceData:
        blood_types = await self._reference.list_blood_types(session)
        locations = await self._reference.list_locations(session)
        return ReferenceData(
            blood_types=[ReferenceItem(id=row.id, name=row.type) for row in blood_types],
            locations=[ReferenceItem(id=row.id, name=row.district) for row in locations],
        )

    async def _require_request(self, session: AsyncSession, request_id: int) -> DonorRequest:
        request = await self._requests.get(session, request_id)
        if request is None:
            raise NotFoundError(f"Donation request {request_id} not found", resource="donor_request")
        return request

    async def _validate_new_request(
        self, session: AsyncSession, payload: CreateDonationRequest
    ) -> None:
        errors: list[dict[str, Any]] = []

        if not payload.patient_name.strip():
            errors.append({"field": "patient_name", "message": "Patient name is required"})
        if not payload.contact_number.strip():
            errors.append({"field": "contact_number", "message": "Contact number is required"})

        email = (payload.requester_email or "").strip()
        if email and not _EMAIL_PATTERN.match(email):
            errors.append({"field": "requester_email", "message": "Requester email is not a valid address"})

        if await self._reference.get_blood_type(session, payload.blood_type_id) is None:
            errors.append({"field": "blood_type_id", "message": f"Unknown blood type {payload.blood_type_id}"})
        if await self._reference.get_location(session, payload.location_id) is None:
            errors.append({"field": "location_id", "message": f"Unknown location {payload.location_id}"})

        user_id = payload.requested_by_user_id
        if user_id is not None and await self._donors.get_user(session, user_id) is None:
            errors.append({"field": "requested_by_user_id", "message": f"Unknown user {user_id}"})

        if errors:
            raise ValidationError("Invalid donation request", errors=errors)


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _request_record(request: DonorRequest) -> DonorRequestRecord:
    return DonorRequestRecord(
        id=request.id,
        patient_name=request.patient_name,
        blood_type_id=request.blood_type_id,
        blood_type=request.blood_type.type if request.blood_type is not None else None,
        location_id=request.location_id,
        location=request.location.district if request.location is not None else None,
        urgency_level=request.urgency_level,
        contact_number=request.contact_number,
        hospital_name=request.hospital_name,
        additional_notes=request.additional_notes,
        requested_by_user_id=request.requested_by_user_id,
        requester_email=request.requester_email,
        status=request.status,
        created_at=request.created_at,
        completed_at=request.completed_at,
    )


def _matched_donor(profile: DonorProfile) -> MatchedDonor:
    identity = donor_identity(profile)
    return MatchedDonor(
        donor_id=profile.donor_id,
        display_name=identity.name,
        email=identity.email,
        phone_number=identity.phone_number,
        blood_type=profile.blood_type.type if profile.blood_type is not None else None,
        location=profile.location.district if profile.location is not None else None,
        is_identity_hidden=identity.is_hidden,
        last_donation_date=profile.last_donation_date,
        age=profile.age,
        gender=profile.gender,
    )


__all__ = ["DonationService"]
