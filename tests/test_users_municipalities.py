import pytest
from sqlalchemy import select, func

from app.core.exceptions import AuthorizationError, ValidationError, NotFoundError
from app.models import Role, CollectorStatus, Notification, NotificationType
from app.schemas import (
    UserCreate,
    UserUpdate,
    HouseholdRegisterRequest,
    ManagerCreate,
    MunicipalityCreate,
    MunicipalityUpdate,
)
from app.services import users as user_service
from app.services import municipalities as municipality_service
from app.services import notifications as notification_service
from app.services import service_requests as request_service

from tests.conftest import PASSWORD, caller_for, new_request


@pytest.fixture
async def admin(make_user):
    return await make_user(Role.ADMIN)


def _account(role, municipality_id=None, **fields):
    data = {
        "first_name": "Grace",
        "last_name": "Nkeng",
        "email": f"{role.value.lower()}@wastecollect.example.com",
        "password": PASSWORD,
        "role": role,
        "municipality_id": municipality_id,
    }
    data.update(fields)
    return UserCreate(**data)


# ============================================================================
# Accounts
# ============================================================================

async def test_collector_gets_code_and_active_status(db, admin, municipality):
    collector = await user_service.create_user(db, caller_for(admin), _account(Role.COLLECTOR, municipality.id))
    assert collector.collector_code
    assert collector.collector_status == CollectorStatus.ACTIVE.value


async def test_role_payload_is_filtered(db, admin, municipality):
    manager = await user_service.create_user(db, caller_for(admin), _account(
        Role.MUNICIPAL_MANAGER, municipality.id, job_title="Head of sanitation", number_of_members=4,
    ))
    assert manager.job_title == "Head of sanitation"
    assert manager.number_of_members is None


async def test_email_is_unique_ignoring_case(db, admin, municipality):
    await user_service.create_user(db, caller_for(admin), _account(Role.HOUSEHOLD, municipality.id))
    with pytest.raises(ValidationError, match="Email"):
        await user_service.create_user(db, caller_for(admin), _account(
            Role.COLLECTOR, municipality.id, email="HOUSEHOLD@wastecollect.example.com",
        ))


async def test_one_manager_per_municipality(db, admin, municipality):
    await user_service.create_user(db, caller_for(admin), _account(Role.MUNICIPAL_MANAGER, municipality.id))
    with pytest.raises(ValidationError, match="already has a manager"):
        await user_service.create_user(db, caller_for(admin), _account(
            Role.MUNICIPAL_MANAGER, municipality.id, email="second@wastecollect.example.com",
        ))


async def test_non_admin_roles_need_a_municipality(db, admin):
    with pytest.raises(ValidationError):
        await user_service.create_user(db, caller_for(admin), _account(Role.HOUSEHOLD))
    with pytest.raises(NotFoundError):
        await user_service.create_user(db, caller_for(admin), _account(Role.HOUSEHOLD, "missing"))


async def test_only_admins_create_accounts(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    with pytest.raises(AuthorizationError):
        await user_service.create_user(db, caller_for(household), _account(Role.COLLECTOR, municipality.id))


async def test_register_household_and_authenticate(db, municipality):
    user = await user_service.register_household(db, HouseholdRegisterRequest(
        first_name="Paul",
        last_name="Fotso",
        email="Paul.Fotso@example.com",
        password=PASSWORD,
        address="4 Church Road",
        municipality_id=municipality.id,
        number_of_members=5,
    ))
    assert user.role == Role.HOUSEHOLD.value
    assert user.email == "paul.fotso@example.com"
    assert user.is_active is True

    assert (await user_service.authenticate(db, "paul.fotso@example.com", PASSWORD)).id == user.id
    assert await user_service.authenticate(db, "paul.fotso@example.com", "wrong-password") is None


async def test_disabled_account_cannot_authenticate(db, admin, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    await user_service.set_enabled(db, caller_for(admin), household.id, False)
    assert await user_service.authenticate(db, household.email, PASSWORD) is None

    with pytest.raises(ValidationError):
        await user_service.set_enabled(db, caller_for(admin), admin.id, False)


async def test_toggle_collector_status(db, admin, make_user, municipality):
    collector = await make_user(Role.COLLECTOR, municipality)
    toggled = await user_service.toggle_collector_status(db, caller_for(admin), collector.id)
    assert toggled.collector_status == CollectorStatus.INACTIVE.value
    toggled = await user_service.toggle_collector_status(db, caller_for(admin), collector.id)
    assert toggled.collector_status == CollectorStatus.ACTIVE.value

    household = await make_user(Role.HOUSEHOLD, municipality)
    with pytest.raises(NotFoundError):
        await user_service.toggle_collector_status(db, caller_for(admin), household.id)


async def test_users_edit_only_their_own_profile(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    neighbour = await make_user(Role.HOUSEHOLD, municipality)

    updated = await user_service.update_user(
        db, caller_for(household), household.id, UserUpdate(number_of_members=3, address="7 River Lane")
    )
    assert updated.number_of_members == 3
    assert updated.address == "7 River Lane"

    with pytest.raises(AuthorizationError):
        await user_service.update_user(db, caller_for(neighbour), household.id, UserUpdate(address="x"))


async def test_collectors_cannot_change_their_own_status(db, make_user, municipality):
    collector = await make_user(Role.COLLECTOR, municipality)
    with pytest.raises(AuthorizationError):
        await user_service.update_user(
            db, caller_for(collector), collector.id, UserUpdate(collector_status=CollectorStatus.ON_LEAVE)
        )


async def test_manager_lists_only_their_municipality(db, make_user, make_municipality):
    here = await make_municipality("Limbe")
    elsewhere = await make_municipality("Kribi")
    manager = await make_user(Role.MUNICIPAL_MANAGER, here)
    await make_user(Role.HOUSEHOLD, here)
    await make_user(Role.HOUSEHOLD, elsewhere)

    users, total = await user_service.list_users(db, caller_for(manager), role=Role.HOUSEHOLD)
    assert total == 1
    assert users[0].municipality_id == here.id


# ============================================================================
# Municipalities
# ============================================================================

async def test_create_municipality_with_manager(db, admin):
    municipality = await municipality_service.create_municipality(db, caller_for(admin), MunicipalityCreate(
        name="  Buea ",
        province="South-West",
        manager=ManagerCreate(
            first_name="Ada",
            last_name="Ndip",
            email="ada.ndip@example.com",
            password=PASSWORD,
        ),
    ))
    assert municipality.name == "Buea"

    response = await municipality_service.to_response(db, municipality)
    assert response["manager_name"] == "Ada Ndip"
    assert response["manager_id"]


async def test_municipality_names_are_unique(db, admin, municipality):
    with pytest.raises(ValidationError):
        await municipality_service.create_municipality(
            db, caller_for(admin), MunicipalityCreate(name=municipality.name.upper())
        )


async def test_municipality_with_users_cannot_be_deleted(db, admin, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    with pytest.raises(ValidationError):
        await municipality_service.delete_municipality(db, caller_for(admin), municipality.id)

    await user_service.delete_user(db, caller_for(admin), household.id)
    await municipality_service.delete_municipality(db, caller_for(admin), municipality.id)
    with pytest.raises(NotFoundError):
        await municipality_service.get_municipality(db, municipality.id)


async def test_manager_access_is_limited_to_own_municipality(db, make_user, make_municipality):
    own = await make_municipality("Garoua")
    other = await make_municipality("Maroua")
    manager = await make_user(Role.MUNICIPAL_MANAGER, own)

    assert (await municipality_service.require_access(db, caller_for(manager), own.id)).id == own.id
    with pytest.raises(AuthorizationError):
        await municipality_service.require_access(db, caller_for(manager), other.id)


async def test_managers_cannot_disable_their_municipality(db, make_user, municipality):
    manager = await make_user(Role.MUNICIPAL_MANAGER, municipality)
    updated = await municipality_service.update_municipality(
        db, caller_for(manager), municipality.id, MunicipalityUpdate(population=120000)
    )
    assert updated.population == 120000

    with pytest.raises(AuthorizationError):
        await municipality_service.update_municipality(
            db, caller_for(manager), municipality.id, MunicipalityUpdate(enabled=False)
        )


async def test_user_with_requests_cannot_be_deleted(db, admin, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    collector = await make_user(Role.COLLECTOR, municipality)
    request = await request_service.create_service_request(db, caller_for(household), new_request())
    await request_service.accept_service_request(db, caller_for(collector), request.id)

    for user in (household, collector):
        with pytest.raises(ValidationError, match="service requests"):
            await user_service.delete_user(db, caller_for(admin), user.id)
    assert (await request_service.get_service_request(db, caller_for(admin), request.id)).household_id == household.id


async def test_deleting_a_user_clears_their_inbox(db, admin, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    await notification_service.notify(db, household.id, "Welcome", "Account created", NotificationType.INFO)

    await user_service.delete_user(db, caller_for(admin), household.id)

    with pytest.raises(NotFoundError):
        await user_service.get_user(db, household.id)
    left = (await db.execute(
        select(func.count(Notification.id)).where(Notification.recipient_id == household.id)
    )).scalar()
    assert left == 0
