"""Repository exports for the donation feature."""

from __future__ import annotations

from typing import TypedDict, cast

from .confirmations import ConfirmationRepository
from .donors import DonorDirectoryRepository
from .reference import ReferenceDataRepository
from .requests import DonorRequestRepository


class DonationRepositoryCollection(TypedDict, total=False):
    """Typed mapping of donation repositories available for dependency injection."""

    donors: DonorDirectoryRepository
    requests: DonorRequestRepository
    confirmations: ConfirmationRepository
    reference: ReferenceDataRepository


def build_repositories() -> DonationRepositoryCollection:
    """Instantiate the donation repositories used by the service layer."""

    return cast(
        DonationRepositoryCollection,
        {
            "donors": DonorDirectoryRepository(),
            "requests": DonorRequestRepository(),
            "confirmations": ConfirmationRepository(),
            "reference": ReferenceDataRepository(),
        },
    )


__all__ = [
    "DonationRepositoryCollection",
    "DonorDirectoryRepository",
    "DonorRequestRepository",
    "ConfirmationRepository",
    "ReferenceDataRepository",
    "build_repositories",
]
