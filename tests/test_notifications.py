import pytest

from app.core.exceptions import AuthorizationError, ValidationError, NotFoundError
from app.models import Role, NotificationType
from app.schemas import Audience, BulkNotificationRequest
from app.services import notifications as notification_service

from tests.conftest import caller_for


@pytest.fixture
async def admin(make_user):
    return await make_user(Role.ADMIN)


async def test_specific_users_with_unknown_id_reports_partial_failure(db, admin, make_user, municipality):
    first = await make_user(Role.HOUSEHOLD, municipality)
    second = await make_user(Role.COLLECTOR, municipality)

    result = await notification_service.send_notifications(db, caller_for(admin), BulkNotificationRequest(
        subject="Holiday schedule",
        message="No pickups on Monday",
        audience=Audience.SPECIFIC_USERS,
        user_ids=[first.id, "ghost", second.id],
    ))

    assert result.delivered_count == 2
    assert result.failed_count == 1
    failed = [e for e in result.entries if not e.delivered]
    assert failed[0].user_id == "ghost"
    assert failed[0].error == "User not found"

    for user in (first, second):
        assert await notification_service.unread_count(db, caller_for(user)) == 1


async def test_role_audience_reaches_only_that_role(db, admin, make_user, municipality):
    collectors = [await make_user(Role.COLLECTOR, municipality) for _ in range(2)]
    household = await make_user(Role.HOUSEHOLD, municipality)

    result = await notification_service.send_notifications(db, caller_for(admin), BulkNotificationRequest(
        subject="Safety briefing",
        message="Gloves are mandatory",
        notification_type=NotificationType.ALERT,
        audience=Audience.ROLE,
        role=Role.COLLECTOR,
    ))

    assert {e.user_id for e in result.entries} == {c.id for c in collectors}
    assert await notification_service.unread_count(db, caller_for(household)) == 0
    alert = await notification_service.latest_unread_alert(db, caller_for(collectors[0]))
    assert alert.subject == "Safety briefing"


async def test_all_audience_skips_disabled_accounts(db, admin, make_user, municipality):
    active = await make_user(Role.HOUSEHOLD, municipality)
    disabled = await make_user(Role.HOUSEHOLD, municipality, enabled=False)

    result = await notification_service.send_notifications(db, caller_for(admin), BulkNotificationRequest(
        subject="Welcome", message="New portal is live", audience=Audience.ALL,
    ))

    recipients = {e.user_id for e in result.entries}
    assert active.id in recipients
    assert admin.id in recipients
    assert disabled.id not in recipients


async def test_role_audience_requires_a_role(db, admin):
    with pytest.raises(ValidationError):
        await notification_service.send_notifications(db, caller_for(admin), BulkNotificationRequest(
            subject="x", message="y", audience=Audience.ROLE,
        ))


async def test_only_admins_broadcast(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    with pytest.raises(AuthorizationError):
        await notification_service.send_notifications(db, caller_for(household), BulkNotificationRequest(
            subject="x", message="y", audience=Audience.ALL,
        ))


async def test_read_unread_cycle(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    caller = caller_for(household)
    first = await notification_service.notify(db, household.id, "One", "First", NotificationType.INFO)
    await notification_service.notify(db, household.id, "Two", "Second", NotificationType.REMINDER)
    assert await notification_service.unread_count(db, caller) == 2

    read = await notification_service.mark_as_read(db, caller, first.id)
    assert read.is_read is True
    assert read.read_at is not None
    assert await notification_service.unread_count(db, caller) == 1

    unread = await notification_service.mark_as_unread(db, caller, first.id)
    assert unread.read_at is None

    assert await notification_service.mark_all_as_read(db, caller) == 2
    assert await notification_service.unread_count(db, caller) == 0


async def test_list_filters_by_read_state(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    caller = caller_for(household)
    first = await notification_service.notify(db, household.id, "One", "First", NotificationType.INFO)
    await notification_service.notify(db, household.id, "Two", "Second", NotificationType.INFO)
    await notification_service.mark_as_read(db, caller, first.id)

    items, total = await notification_service.list_notifications(db, caller, is_read=False)
    assert total == 1
    assert items[0].subject == "Two"


async def test_notifications_are_private(db, make_user, municipality):
    owner = await make_user(Role.HOUSEHOLD, municipality)
    other = await make_user(Role.HOUSEHOLD, municipality)
    notification = await notification_service.notify(db, owner.id, "Private", "Only for owner", NotificationType.INFO)

    with pytest.raises(AuthorizationError):
        await notification_service.mark_as_read(db, caller_for(other), notification.id)
    with pytest.raises(NotFoundError):
        await notification_service.get_notification(db, caller_for(owner), "missing")
