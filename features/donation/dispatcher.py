"""Fan a donation request out to donors across notification channels."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

from sqlalchemy.ext.asyncio import async_sessionmaker

from core.exceptions import NotFoundError
from infrastructure.db.sessions import session_scope

from .channels import NotificationChannel
from .db_models import DonorProfile, DonorRequest
from .ledger import ConfirmationLedger
from .matching import MatchingEngine
from .repositories import DonorDirectoryRepository, DonorRequestRepository
from .schemas.internal import SendOutcome

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Deliver request notifications while isolating every failure.

    A channel failing for one donor never prevents other channels or other
    donors from being tried, and no delivery failure escapes this class.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        *,
        channels: Sequence[NotificationChannel],
        ledger: ConfirmationLedger,
        targeted_channel: NotificationChannel | None = None,
        matching: MatchingEngine | None = None,
        requests_repo: DonorRequestRepository | None = None,
        directory: DonorDirectoryRepository | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._channels = list(channels)
        self._ledger = ledger
        self._directory = directory or DonorDirectoryRepository()
        self._matching = matching or MatchingEngine(self._directory)
        self._requests_repo = requests_repo or DonorRequestRepository()
        self._targeted_channel = targeted_channel or next(
            (channel for channel in self._channels if channel.name == "email"), None
        )

    async def notify_request(self, request_id: int) -> int:
        """Load ``request_id`` in a fresh session and notify its matched donors."""

        async with session_scope(self._session_factory) as session:
            request = await self._requests_repo.get(session, request_id)
        if request is None:
            logger.warning("Request vanished before dispatch", extra={"request_id": request_id})
            return 0
        return await self.notify_matching_donors(request)

    async def notify_matching_donors(self, request: DonorRequest) -> int:
        """Notify every eligible donor; return successful sends across all channels."""

        async with session_scope(self._session_factory) as session:
            donors = await self._matching.match_donors(session, request)

        sent = 0
        for donor in donors:
            reachable = [channel for channel in self._channels if channel.can_reach(donor)]
            if not reachable:
                logger.debug(
                    "Donor has no usable contact channel",
                    extra={"request_id": request.id, "donor_id": donor.donor_id},
                )
                continue
            for channel in reachable:
                if await self._send_via(channel, request, donor):
                    sent += 1

        logger.info(
            "Request notifications dispatched",
            extra={"request_id": request.id, "matched_donors": len(donors), "sent": sent},
        )
        return sent

    async def send_to_selected_donors(
        self, request_id: int, donor_ids: Iterable[int]
    ) -> SendOutcome:
        """Email operator-chosen donors and record who was contacted."""

        wanted = list(dict.fromkeys(donor_ids))
        async with session_scope(self._session_factory) as session:
            request = await self._requests_repo.get(session, request_id)
            if request is None:
                raise NotFoundError(f"Donation request {request_id} not found", resource="donor_request")
            profiles = await self._directory.get_profiles(session, wanted)

        outcome = SendOutcome()
        channel = self._targeted_channel
        for donor_id in wanted:
            profile = profiles.get(donor_id)
            if profile is None:
                outcome.record_failure(donor_id, "Donor not found")
                continue
            if channel is None or not channel.can_reach(profile):
                outcome.record_failure(donor_id, "Donor has no email address")
                continue

            try:
                delivered = await channel.send(request, profile)
            except Exception as exc:
                logger.warning(
                    "Targeted notification failed",
                    extra={"request_id": request_id, "donor_id": donor_id, "error": str(exc)},
                )
                outcome.record_failure(donor_id, str(exc) or "Delivery failed")
                continue
            if not delivered:
                outcome.record_failure(donor_id, "Delivery failed")
                continue

            outcome.success_count += 1
            try:
                await self._ledger.mark_contacted(request_id, donor_id)
            except Exception:
                logger.exception(
                    "Email sent but contact was not recorded",
                    extra={"request_id": request_id, "donor_id": donor_id},
                )

        logger.info(
            "Targeted notifications sent",
            extra={
                "request_id": request_id,
                "success_count": outcome.success_count,
                "fail_count": outcome.fail_count,
            },
        )
        return outcome

    async def _send_via(
        self, channel: NotificationChannel, request: DonorRequest, donor: DonorProfile
    ) -> bool:
        try:
            return bool(await channel.send(request, donor))
        except Exception:
            logger.exception(
                "Notification channel failed",
                extra={"channel": channel.name, "request_id": request.id, "donor_id": donor.donor_id},
            )
            return False


__all__ = ["NotificationDispatcher"]
