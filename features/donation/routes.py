"""HTTP routing for the donation feature."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from core.pydantic_schemas import created as api_created, ok as api_ok

from .dependencies import get_donation_service, get_donation_session
from .schemas import (
    ConfirmationListEnvelope,
    CreateDonationRequest,
    CreatedRequestData,
    CreatedRequestEnvelope,
    DonationErrorResponse,
    DonorRequestEnvelope,
    MatchingDonorsEnvelope,
    NotifySelectedDonorsRequest,
    RecordConfirmationRequest,
    RecordedConfirmationData,
    RecordedConfirmationEnvelope,
    ReferenceDataEnvelope,
    SendOutcomeEnvelope,
    UpdateRequestStatus,
)
from .service import DonationService

logger = logging.getLogger(__name__)

if hasattr(status, "HTTP_422_UNPROCESSABLE_CONTENT"):
    HTTP_422_UNPROCESSABLE_STATUS = status.HTTP_422_UNPROCESSABLE_CONTENT
else:  # pragma: no cover - exercised in environments with older Starlette
    HTTP_422_UNPROCESSABLE_STATUS = getattr(status, "HTTP_422_UNPROCESSABLE_ENTITY", 422)

_ERROR_RESPONSES = {
    status.HTTP_404_NOT_FOUND: {"model": DonationErrorResponse},
    HTTP_422_UNPROCESSABLE_STATUS: {"model": DonationErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": DonationErrorResponse},
}

router = APIRouter(prefix="/api/v1/donations", tags=["Donations"])


@router.post(
    "/requests",
    summary="Create a donation request",
    description="Persist a request and notify matching donors in the background.",
    status_code=status.HTTP_201_CREATED,
    response_model=CreatedRequestEnvelope,
    responses=_ERROR_RESPONSES,
)
async def create_request_endpoint(
    payload: CreateDonationRequest,
    session: AsyncSession = Depends(get_donation_session),
    service: DonationService = Depends(get_donation_service),
):
    request = await service.create_request(session, payload)
    data = CreatedRequestData(request_id=request.id, status=request.status)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=api_created("Donation request created", data=data.model_dump(mode="json")),
    )


@router.get(
    "/requests/{request_id}",
    summary="Get a donation request",
    response_model=DonorRequestEnvelope,
    responses=_ERROR_RESPONSES,
)
async def get_request_endpoint(
    request_id: int,
    session: AsyncSession = Depends(get_donation_session),
    service: DonationService = Depends(get_donation_service),
):
    record = await service.get_request(session, request_id)
    return api_ok("Donation request retrieved", data=record.model_dump(mode="json"))


@router.patch(
    "/requests/{request_id}/status",
    summary="Change a request's lifecycle status",
    response_model=DonorRequestEnvelope,
    responses=_ERROR_RESPONSES,
)
async def update_request_status_endpoint(
    request_id: int,
    payload: UpdateRequestStatus,
    session: AsyncSession = Depends(get_donation_session),
    service: DonationService = Depends(get_donation_service),
):
    record = await service.update_request_status(session, request_id, payload.status)
    return api_ok("Donation request status updated", data=record.model_dump(mode="json"))


@router.get(
    "/requests/{request_id}/matching-donors",
    summary="List donors eligible for a request",
    description="Hidden identities are shown as 'Donor #<id>' with contact details withheld.",
    response_model=MatchingDonorsEnvelope,
    responses=_ERROR_RESPONSES,
)
async def matching_donors_endpoint(
    request_id: int,
    session: AsyncSession = Depends(get_donation_session),
    service: DonationService = Depends(get_donation_service),
):
    donors = await service.get_matching_donors(session, request_id)
    return api_ok(
        "Matching donors retrieved",
        data=[donor.model_dump(mode="json") for donor in donors],
        meta={"total_count": len(donors)},
    )


@router.post(
    "/requests/{request_id}/notify",
    summary="Email selected donors about a request",
    response_model=SendOutcomeEnvelope,
    responses=_ERROR_RESPONSES,
)
async def notify_selected_endpoint(
    request_id: int,
    payload: NotifySelectedDonorsRequest,
    service: DonationService = Depends(get_donation_service),
):
    outcome = await service.send_to_selected(request_id, payload.donor_ids)
    logger.info(
        "Targeted donor notification requested",
        extra={"request_id": request_id, "donor_count": len(payload.donor_ids)},
    )
    return api_ok(
        f"Sent {outcome.success_count} of {len(payload.donor_ids)} notifications",
        data=outcome.model_dump(mode="json"),
    )


@router.post(
    "/requests/{request_id}/confirmations",
    summary="Record a donor's answer",
    response_model=RecordedConfirmationEnvelope,
    responses=_ERROR_RESPONSES,
)
async def record_confirmation_endpoint(
    request_id: int,
    payload: RecordConfirmationRequest,
    session: AsyncSession = Depends(get_donation_session),
    service: DonationService = Depends(get_donation_service),
):
    result = await service.record_confirmation(session, request_id, payload)
    data = RecordedConfirmationData(
        is_new_record=result.is_new_record,
        transitioned_to_confirmed=result.transitioned_to_confirmed,
        confirmation=result.confirmation,
    )
    message = "Confirmation recorded" if result.is_new_record else "Confirmation updated"
    return api_ok(message, data=data.model_dump(mode="json"))


@router.get(
    "/requests/{request_id}/confirmations",
    summary="List confirmations for a request",
    response_model=ConfirmationListEnvelope,
    responses=_ERROR_RESPONSES,
)
async def list_confirmations_endpoint(
    request_id: int,
    session: AsyncSession = Depends(get_donation_session),
    service: DonationService = Depends(get_donation_service),
):
    views = await service.list_confirmations(session, request_id)
    return api_ok(
        "Confirmations retrieved",
        data=[view.model_dump(mode="json") for view in views],
        meta={"total_count": len(views)},
    )


@router.get(
    "/reference",
    summary="List blood types and locations",
    response_model=ReferenceDataEnvelope,
    responses=_ERROR_RESPONSES,
)
async def reference_data_endpoint(
    session: AsyncSession = Depends(get_donation_session),
    service: DonationService = Depends(get_donation_service),
):
    data = await service.list_reference_data(session)
    return api_ok("Reference data retrieved", data=data.model_dump(mode="json"))


__all__ = ["router"]
