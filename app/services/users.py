"""
WasteCollect Server - User Accounts
Registration and administration of every role
"""
import logging
from typing import Optional, List, Tuple
from sqlalchemy import select, func, or_, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError, AuthorizationError
from app.core.security import get_password_hash, verify_password, generate_collector_code
from app.models import (
    User,
    Role,
    CollectorStatus,
    Municipality,
    ServiceRequest,
    WasteCollection,
    Payment,
    CollectorRating,
    Dispute,
    Notification,
    Report,
)
from app.schemas.auth import HouseholdRegisterRequest
from app.schemas.user import UserCreate, UserUpdate
from app.services.caller import Caller

logger = logging.getLogger(__name__)

# Columns each role is allowed to carry besides the shared identity fields
ROLE_FIELDS = {
    Role.HOUSEHOLD: ("number_of_members", "housing_type", "latitude", "longitude",
                     "is_active", "collection_preferences"),
    Role.COLLECTOR: ("collector_status", "alert_threshold"),
    Role.MUNICIPAL_MANAGER: ("job_title",),
    Role.ADMIN: ("department",),
}

COMMON_FIELDS = ("first_name", "last_name", "phone_number", "address")


def _enum_value(value):
    return value.value if hasattr(value, "value") else value


async def _ensure_email_free(db: AsyncSession, email: str, exclude_id: Optional[str] = None) -> None:
    statement = select(User.id).where(func.lower(User.email) == email.lower())
    if exclude_id:
        statement = statement.where(User.id != exclude_id)
    if (await db.execute(statement)).scalar_one_or_none():
        raise ValidationError("Email already registered", field="email")


async def _ensure_municipality(db: AsyncSession, municipality_id: Optional[str], role: Role) -> None:
    if role == Role.ADMIN:
        return
    if not municipality_id:
        raise ValidationError("municipality_id is required for this role", field="municipality_id")
    result = await db.execute(select(Municipality.id).where(Municipality.id == municipality_id))
    if not result.scalar_one_or_none():
        raise NotFoundError("Municipality", municipality_id)


async def _ensure_single_manager(db: AsyncSession, municipality_id: str, exclude_id: Optional[str] = None) -> None:
    statement = select(User.id).where(
        User.role == Role.MUNICIPAL_MANAGER.value,
        User.municipality_id == municipality_id,
    )
    if exclude_id:
        statement = statement.where(User.id != exclude_id)
    if (await db.execute(statement)).scalar_one_or_none():
        raise ValidationError("Municipality already has a manager", field="municipality_id")


async def get_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User", user_id)
    return user


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
    return result.scalar_one_or_none()


async def authenticate(db: AsyncSession, email: str, password: str) -> Optional[User]:
    """Returns the user when the credentials match an enabled, unlocked account"""
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        return None
    if not user.enabled or user.locked:
        return None
    return user


async def create_user(db: AsyncSession, caller: Caller, data: UserCreate) -> User:
    """Creates an account of any role; only the payload columns of that role are kept"""
    caller.require(Role.ADMIN)
    role = Role(data.role)

    await _ensure_email_free(db, data.email)
    await _ensure_municipality(db, data.municipality_id, role)
    if role == Role.MUNICIPAL_MANAGER:
        await _ensure_single_manager(db, data.municipality_id)

    user = User(
        email=data.email.lower(),
        hashed_password=get_password_hash(data.password),
        role=role.value,
        municipality_id=data.municipality_id if role != Role.ADMIN else None,
        enabled=True,
        locked=False,
    )
    for field in COMMON_FIELDS:
        setattr(user, field, getattr(data, field))
    for field in ROLE_FIELDS[role]:
        value = getattr(data, field, None)
        if value is not None:
            setattr(user, field, _enum_value(value))

    if role == Role.COLLECTOR:
        user.collector_code = generate_collector_code()
        user.collector_status = user.collector_status or CollectorStatus.ACTIVE.value
    if role == Role.HOUSEHOLD:
        user.is_active = True

    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info(f"{role.value} account {user.email} created by {caller.user_id}")
    return user


async def register_household(db: AsyncSession, data: HouseholdRegisterRequest) -> User:
    """Public self-registration"""
    await _ensure_email_free(db, data.email)
    await _ensure_municipality(db, data.municipality_id, Role.HOUSEHOLD)

    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email.lower(),
        hashed_password=get_password_hash(data.password),
        phone_number=data.phone_number,
        address=data.address,
        role=Role.HOUSEHOLD.value,
        municipality_id=data.municipality_id,
        number_of_members=data.number_of_members,
        housing_type=_enum_value(data.housing_type),
        latitude=data.latitude,
        longitude=data.longitude,
        collection_preferences=data.collection_preferences,
        is_active=True,
        enabled=True,
        locked=False,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info(f"Household {user.email} registered")
    return user


async def update_user(db: AsyncSession, caller: Caller, user_id: str, data: UserUpdate) -> User:
    """Admins edit anyone; other users only their own profile"""
    if not caller.is_admin and caller.user_id != user_id:
        raise AuthorizationError("Users may only update their own profile")

    user = await get_user(db, user_id)
    role = Role(user.role)
    changes = data.model_dump(exclude_unset=True)

    if "email" in changes and changes["email"]:
        await _ensure_email_free(db, changes["email"], exclude_id=user.id)
        user.email = changes["email"].lower()
    if changes.get("password"):
        user.hashed_password = get_password_hash(changes["password"])

    if "municipality_id" in changes and changes["municipality_id"] != user.municipality_id:
        if not caller.is_admin:
            raise AuthorizationError("Only administrators can move users between municipalities")
        await _ensure_municipality(db, changes["municipality_id"], role)
        if role == Role.MUNICIPAL_MANAGER:
            await _ensure_single_manager(db, changes["municipality_id"], exclude_id=user.id)
        user.municipality_id = changes["municipality_id"]

    if "collector_status" in changes and not caller.is_admin:
        raise AuthorizationError("Only administrators can change a collector's status")

    for field in COMMON_FIELDS + ROLE_FIELDS[role]:
        if field in changes:
            setattr(user, field, _enum_value(changes[field]))

    await db.flush()
    await db.refresh(user)
    return user


async def set_enabled(db: AsyncSession, caller: Caller, user_id: str, enabled: bool) -> User:
    caller.require(Role.ADMIN)
    user = await get_user(db, user_id)
    if user.id == caller.user_id and not enabled:
        raise ValidationError("Administrators cannot disable their own account")
    user.enabled = enabled
    await db.flush()
    await db.refresh(user)
    logger.info(f"User {user.email} {'enabled' if enabled else 'disabled'} by {caller.user_id}")
    return user


async def toggle_collector_status(db: AsyncSession, caller: Caller, user_id: str) -> User:
    """ACTIVE collectors become INACTIVE, anything else becomes ACTIVE"""
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    user = await get_user(db, user_id)
    if user.role != Role.COLLECTOR.value:
        raise NotFoundError("Collector", user_id)

    if user.collector_status == CollectorStatus.ACTIVE.value:
        user.collector_status = CollectorStatus.INACTIVE.value
    else:
        user.collector_status = CollectorStatus.ACTIVE.value
    await db.flush()
    await db.refresh(user)
    return user


# Records that must outlive the account that created or handled them
_OWNERSHIP = (
    ("service requests", ServiceRequest.id, (ServiceRequest.household_id, ServiceRequest.collector_id)),
    ("collections", WasteCollection.id, (WasteCollection.household_id, WasteCollection.collector_id)),
    ("payments", Payment.id, (Payment.household_id, Payment.collector_id)),
    ("ratings", CollectorRating.id, (CollectorRating.household_id, CollectorRating.collector_id)),
    ("disputes", Dispute.id, (Dispute.user_id,)),
    ("reports", Report.id, (Report.created_by_id,)),
)


async def _owned_records(db: AsyncSession, user_id: str) -> List[str]:
    owned = []
    for label, key, columns in _OWNERSHIP:
        count = await db.execute(
            select(func.count(key)).where(or_(*(column == user_id for column in columns)))
        )
        if count.scalar():
            owned.append(label)
    return owned


async def delete_user(db: AsyncSession, caller: Caller, user_id: str) -> None:
    caller.require(Role.ADMIN)
    if user_id == caller.user_id:
        raise ValidationError("Administrators cannot delete their own account")
    user = await get_user(db, user_id)

    owned = await _owned_records(db, user.id)
    if owned:
        raise ValidationError(
            f"User still owns {', '.join(owned)}; disable the account instead"
        )

    await db.execute(delete(Notification).where(Notification.recipient_id == user.id))
    await db.delete(user)
    await db.flush()
    logger.info(f"User {user.email} deleted by {caller.user_id}")


async def list_users(
    db: AsyncSession,
    caller: Caller,
    role: Optional[Role] = None,
    municipality_id: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 0,
    size: int = 20,
) -> Tuple[List[User], int]:
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    conditions = []
    if caller.role == Role.MUNICIPAL_MANAGER:
        manager = await get_user(db, caller.user_id)
        municipality_id = manager.municipality_id
    if role is not None:
        conditions.append(User.role == role.value)
    if municipality_id:
        conditions.append(User.municipality_id == municipality_id)
    if search:
        pattern = f"%{search.lower()}%"
        conditions.append(or_(
            func.lower(User.first_name).like(pattern),
            func.lower(User.last_name).like(pattern),
            func.lower(User.email).like(pattern),
        ))

    total = (await db.execute(select(func.count(User.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(User)
        .where(*conditions)
        .order_by(User.created_at.desc())
        .offset(page * size)
        .limit(size)
    )
    return list(result.scalars().all()), total
