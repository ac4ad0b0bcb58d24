"""
WasteCollect Server - Municipalities
"""
import logging
from typing import Optional, List, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError, AuthorizationError
from app.models import Municipality, User, Role
from app.schemas.municipality import MunicipalityCreate, MunicipalityUpdate
from app.schemas.user import UserCreate
from app.services.caller import Caller
from app.services import users as user_service

logger = logging.getLogger(__name__)


async def _ensure_name_free(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    statement = select(Municipality.id).where(func.lower(Municipality.name) == name.strip().lower())
    if exclude_id:
        statement = statement.where(Municipality.id != exclude_id)
    if (await db.execute(statement)).scalar_one_or_none():
        raise ValidationError("Municipality name already in use", field="name")


async def get_municipality(db: AsyncSession, municipality_id: str) -> Municipality:
    result = await db.execute(select(Municipality).where(Municipality.id == municipality_id))
    municipality = result.scalar_one_or_none()
    if not municipality:
        raise NotFoundError("Municipality", municipality_id)
    return municipality


async def get_manager(db: AsyncSession, municipality_id: str) -> Optional[User]:
    result = await db.execute(
        select(User).where(
            User.role == Role.MUNICIPAL_MANAGER.value,
            User.municipality_id == municipality_id,
        )
    )
    return result.scalar_one_or_none()


async def require_access(db: AsyncSession, caller: Caller, municipality_id: str) -> Municipality:
    """Admins see every municipality, managers only their own"""
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    municipality = await get_municipality(db, municipality_id)
    if caller.role == Role.MUNICIPAL_MANAGER:
        manager = await user_service.get_user(db, caller.user_id)
        if manager.municipality_id != municipality.id:
            raise AuthorizationError("Managers can only access their own municipality")
    return municipality


async def create_municipality(db: AsyncSession, caller: Caller, data: MunicipalityCreate) -> Municipality:
    """Creates the municipality and, when given, its manager account"""
    caller.require(Role.ADMIN)
    await _ensure_name_free(db, data.name)

    municipality = Municipality(
        name=data.name.strip(),
        province=data.province,
        country=data.country,
        population=data.population,
        waste_management_budget=data.waste_management_budget,
        enabled=True,
    )
    db.add(municipality)
    await db.flush()

    if data.manager:
        await user_service.create_user(db, caller, UserCreate(
            first_name=data.manager.first_name,
            last_name=data.manager.last_name,
            email=data.manager.email,
            password=data.manager.password,
            phone_number=data.manager.phone_number,
            job_title=data.manager.job_title,
            role=Role.MUNICIPAL_MANAGER,
            municipality_id=municipality.id,
        ))

    await db.refresh(municipality)
    logger.info(f"Municipality {municipality.name} created by {caller.user_id}")
    return municipality


async def update_municipality(
    db: AsyncSession,
    caller: Caller,
    municipality_id: str,
    data: MunicipalityUpdate,
) -> Municipality:
    municipality = await require_access(db, caller, municipality_id)
    changes = data.model_dump(exclude_unset=True)

    if "enabled" in changes and not caller.is_admin:
        raise AuthorizationError("Only administrators can enable or disable a municipality")
    if changes.get("name"):
        await _ensure_name_free(db, changes["name"], exclude_id=municipality.id)
        changes["name"] = changes["name"].strip()

    for field, value in changes.items():
        setattr(municipality, field, value)
    await db.flush()
    await db.refresh(municipality)
    return municipality


async def delete_municipality(db: AsyncSession, caller: Caller, municipality_id: str) -> None:
    caller.require(Role.ADMIN)
    municipality = await get_municipality(db, municipality_id)

    members = await db.execute(
        select(func.count(User.id)).where(User.municipality_id == municipality.id)
    )
    if members.scalar():
        raise ValidationError("Municipality still has users; move or delete them first")

    await db.delete(municipality)
    await db.flush()
    logger.info(f"Municipality {municipality.name} deleted by {caller.user_id}")


async def list_municipalities(
    db: AsyncSession,
    search: Optional[str] = None,
    enabled: Optional[bool] = None,
    page: int = 0,
    size: int = 50,
) -> Tuple[List[Municipality], int]:
    conditions = []
    if search:
        conditions.append(func.lower(Municipality.name).like(f"%{search.lower()}%"))
    if enabled is not None:
        conditions.append(Municipality.enabled == enabled)

    total = (await db.execute(select(func.count(Municipality.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(Municipality)
        .where(*conditions)
        .order_by(Municipality.name)
        .offset(page * size)
        .limit(size)
    )
    return list(result.scalars().all()), total


async def to_response(db: AsyncSession, municipality: Municipality) -> dict:
    data = municipality.to_dict()
    manager = await get_manager(db, municipality.id)
    data["manager_id"] = manager.id if manager else None
    data["manager_name"] = manager.full_name if manager else None
    return data
