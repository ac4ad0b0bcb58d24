import pytest
from sqlalchemy import select

from app.core.exceptions import InvalidStateError, AuthorizationError, NotFoundError, ValidationError
from app.models import Role, DisputeStatus, Notification, NotificationType
from app.services import disputes as dispute_service
from app.services.disputes import can_transition_dispute

from tests.conftest import caller_for, run_to_completion

D = DisputeStatus


@pytest.mark.parametrize("current,target,allowed", [
    (D.OPEN, D.IN_PROGRESS, True),
    (D.OPEN, D.RESOLVED, True),
    (D.OPEN, D.CLOSED, True),
    (D.IN_PROGRESS, D.RESOLVED, True),
    (D.IN_PROGRESS, D.OPEN, False),
    (D.RESOLVED, D.CLOSED, True),
    (D.RESOLVED, D.IN_PROGRESS, False),
    (D.CLOSED, D.OPEN, False),
])
def test_dispute_graph(current, target, allowed):
    assert can_transition_dispute(current, target) is allowed


@pytest.fixture
async def household(make_user, municipality):
    return await make_user(Role.HOUSEHOLD, municipality)


@pytest.fixture
async def admin(make_user):
    return await make_user(Role.ADMIN)


async def test_dispute_walks_to_closed_and_notifies_owner(db, household, admin):
    dispute = await dispute_service.create_dispute(
        db, caller_for(household), "Missed pickup", "Nobody came on Tuesday"
    )
    assert dispute.status == D.OPEN.value

    dispute = await dispute_service.resolve_dispute(db, caller_for(admin), dispute.id, D.IN_PROGRESS)
    dispute = await dispute_service.resolve_dispute(
        db, caller_for(admin), dispute.id, D.RESOLVED, note="Pickup rescheduled"
    )
    assert dispute.resolution_note == "Pickup rescheduled"
    dispute = await dispute_service.resolve_dispute(db, caller_for(admin), dispute.id, D.CLOSED)
    assert dispute.status == D.CLOSED.value

    types = (await db.execute(
        select(Notification.notification_type).where(Notification.dispute_id == dispute.id)
    )).scalars().all()
    assert types == [NotificationType.DISPUTE_RESOLUTION.value] * 3


async def test_closed_dispute_cannot_reopen(db, household, admin):
    dispute = await dispute_service.create_dispute(db, caller_for(household), "Overcharged", "Paid twice")
    await dispute_service.resolve_dispute(db, caller_for(admin), dispute.id, D.CLOSED)

    with pytest.raises(InvalidStateError):
        await dispute_service.resolve_dispute(db, caller_for(admin), dispute.id, D.OPEN)


async def test_households_cannot_resolve(db, household):
    dispute = await dispute_service.create_dispute(db, caller_for(household), "Overcharged", "Paid twice")
    with pytest.raises(AuthorizationError):
        await dispute_service.resolve_dispute(db, caller_for(household), dispute.id, D.RESOLVED)


async def test_dispute_on_unknown_request_is_not_found(db, household):
    with pytest.raises(NotFoundError):
        await dispute_service.create_dispute(
            db, caller_for(household), "Missed pickup", "See request", service_request_id="missing"
        )


async def test_blank_title_is_rejected(db, household):
    with pytest.raises(ValidationError):
        await dispute_service.create_dispute(db, caller_for(household), "  ", "Something happened")


async def test_dispute_linked_to_own_request(db, household, make_user, municipality):
    collector = await make_user(Role.COLLECTOR, municipality)
    request = await run_to_completion(db, household, collector)
    dispute = await dispute_service.create_dispute(
        db, caller_for(household), "Bins left open", "Lids were not closed", service_request_id=request.id
    )
    assert dispute.service_request_id == request.id

    mine = await dispute_service.disputes_for_user(db, caller_for(household))
    assert [d.id for d in mine] == [dispute.id]


async def test_owner_marks_dispute_read(db, household, make_user, municipality):
    dispute = await dispute_service.create_dispute(db, caller_for(household), "Noise", "Truck at 5am")
    dispute = await dispute_service.mark_dispute_read(db, caller_for(household), dispute.id)
    assert dispute.read is True

    stranger = await make_user(Role.HOUSEHOLD, municipality)
    with pytest.raises(AuthorizationError):
        await dispute_service.get_dispute(db, caller_for(stranger), dispute.id)
