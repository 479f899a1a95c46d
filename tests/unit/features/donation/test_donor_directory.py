from __future__ import annotations

import pytest

from features.donation.matching import MatchingEngine
from features.donation.reference_data import seed_reference_data
from features.donation.repositories import DonorDirectoryRepository
from infrastructure.db import session_scope
from tests.utils.donation_factories import A_POSITIVE, BEIRUT, O_NEGATIVE, TRIPOLI, add_donor, add_request


@pytest.mark.asyncio
async def test_matching_requires_exact_type_location_and_eligibility(session_factory):
    async with session_scope(session_factory) as session:
        await add_donor(session, 1)
        await add_donor(session, 2, is_available=False)
        await add_donor(session, 3, location_id=TRIPOLI)
        await add_donor(session, 4, blood_type_id=A_POSITIVE)
        await add_donor(session, 5, is_healthy_for_donation=False)
        request = await add_request(session, blood_type_id=O_NEGATIVE, location_id=BEIRUT)

        donors = await MatchingEngine().match_donors(session, request)

    assert [donor.donor_id for donor in donors] == [1]


@pytest.mark.asyncio
async def test_matching_returns_empty_list_when_nobody_qualifies(session_factory):
    async with session_scope(session_factory) as session:
        await add_donor(session, 1, location_id=TRIPOLI)
        request = await add_request(session)

        assert await MatchingEngine().match_donors(session, request) == []


@pytest.mark.asyncio
async def test_get_profiles_skips_unknown_ids(session_factory):
    async with session_scope(session_factory) as session:
        await add_donor(session, 1)
        await add_donor(session, 2)

        profiles = await DonorDirectoryRepository().get_profiles(session, [2, 99, 1, 2])

    assert sorted(profiles) == [1, 2]
    assert profiles[1].donor.email == "donor1@example.com"


@pytest.mark.asyncio
async def test_find_donor_for_reply_is_case_insensitive(session_factory):
    async with session_scope(session_factory) as session:
        await add_donor(session, 7, email="Rami.H@Example.com")

        profile = await DonorDirectoryRepository().find_donor_for_reply(
            session, "rami.h@example.com", O_NEGATIVE, BEIRUT
        )

    assert profile is not None
    assert profile.donor_id == 7


@pytest.mark.asyncio
async def test_find_donor_for_reply_requires_compatible_profile(session_factory):
    async with session_scope(session_factory) as session:
        await add_donor(session, 7, email="rami@example.com", location_id=TRIPOLI)
        directory = DonorDirectoryRepository()

        assert await directory.find_donor_for_reply(session, "rami@example.com", O_NEGATIVE, BEIRUT) is None
        assert await directory.find_donor_for_reply(session, "", O_NEGATIVE, TRIPOLI) is None
        assert await directory.find_donor_for_reply(session, "someone@else.com", O_NEGATIVE, TRIPOLI) is None


@pytest.mark.asyncio
async def test_seed_reference_data_is_idempotent(session_factory):
    # The fixture already seeded every row
    async with session_scope(session_factory) as session:
        assert await seed_reference_data(session) == 0
