import pytest
from sqlalchemy import select

from app.core.exceptions import ValidationError, InvalidStateError, AuthorizationError
from app.models import Role, CollectorRating, Notification
from app.services import ratings as rating_service
from app.services import service_requests as request_service

from tests.conftest import caller_for, new_request, run_to_completion


@pytest.fixture
async def household(make_user, municipality):
    return await make_user(Role.HOUSEHOLD, municipality)


@pytest.fixture
async def collector(make_user, municipality):
    return await make_user(Role.COLLECTOR, municipality)


async def test_completed_request_can_be_rated_once(db, household, collector):
    request = await run_to_completion(db, household, collector)

    rating = await rating_service.rate_collector(db, caller_for(household), request.id, 5, "Very punctual")
    assert rating.collector_id == collector.id
    assert rating.rating == 5

    with pytest.raises(ValidationError, match="already rated"):
        await rating_service.rate_collector(db, caller_for(household), request.id, 4)

    stored = (await db.execute(
        select(CollectorRating).where(CollectorRating.service_request_id == request.id)
    )).scalars().all()
    assert len(stored) == 1
    assert stored[0].rating == 5


async def test_rating_notifies_the_collector(db, household, collector):
    request = await run_to_completion(db, household, collector)
    await rating_service.rate_collector(db, caller_for(household), request.id, 3)

    subjects = (await db.execute(
        select(Notification.subject).where(Notification.recipient_id == collector.id)
    )).scalars().all()
    assert "New Rating Received" in subjects


@pytest.mark.parametrize("value", [0, 6])
async def test_rating_outside_one_to_five_is_rejected(db, household, collector, value):
    request = await run_to_completion(db, household, collector)
    with pytest.raises(ValidationError):
        await rating_service.rate_collector(db, caller_for(household), request.id, value)


async def test_unfinished_request_cannot_be_rated(db, household, collector):
    request = await request_service.create_service_request(db, caller_for(household), new_request())
    await request_service.accept_service_request(db, caller_for(collector), request.id)

    with pytest.raises(InvalidStateError):
        await rating_service.rate_collector(db, caller_for(household), request.id, 4)


async def test_only_the_requesting_household_rates(db, household, collector, make_user, municipality):
    neighbour = await make_user(Role.HOUSEHOLD, municipality)
    request = await run_to_completion(db, household, collector)

    with pytest.raises(AuthorizationError):
        await rating_service.rate_collector(db, caller_for(neighbour), request.id, 2)


async def test_recent_feedback_only_lists_commented_ratings(db, household, collector):
    first = await run_to_completion(db, household, collector)
    second = await run_to_completion(db, household, collector)
    await rating_service.rate_collector(db, caller_for(household), first.id, 4, "Friendly crew")
    await rating_service.rate_collector(db, caller_for(household), second.id, 2)

    feedback = await rating_service.recent_feedback(db, collector.id)
    assert [r.comment for r in feedback] == ["Friendly crew"]
    assert len(await rating_service.list_ratings_for_collector(db, collector.id)) == 2
