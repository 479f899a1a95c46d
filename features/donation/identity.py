"""Donor identity hiding applied wherever a donor is shown to someone else."""

from __future__ import annotations

from typing import NamedTuple

from .db_models import DonorProfile

HIDDEN_BY_DONOR = "Hidden by donor"


class DonorIdentity(NamedTuple):
    name: str
    email: str | None
    phone_number: str | None
    is_hidden: bool


def donor_display_name(profile: DonorProfile) -> str:
    """``Donor #<id>`` for hidden identities, the real full name otherwise."""

    if profile.is_identity_hidden or profile.donor is None:
        return f"Donor #{profile.donor_id}"
    return profile.donor.full_name


def donor_identity(profile: DonorProfile) -> DonorIdentity:
    """Name and contact details a third party is allowed to see."""

    if profile.is_identity_hidden:
        return DonorIdentity(donor_display_name(profile), HIDDEN_BY_DONOR, HIDDEN_BY_DONOR, True)

    donor = profile.donor
    return DonorIdentity(
        donor_display_name(profile),
        donor.email if donor is not None else None,
        donor.phone_number if donor is not None else None,
        False,
    )


__all__ = ["HIDDEN_BY_DONOR", "DonorIdentity", "donor_display_name", "donor_identity"]
