"""
WasteCollect Server - Service Request Lifecycle
State machine for pickup requests and the collection record written on completion

    PENDING -> ACCEPTED -> IN_PROGRESS -> COMPLETED
    PENDING | ACCEPTED -> REJECTED
    PENDING | ACCEPTED | IN_PROGRESS -> CANCELLED

Every status change is a compare-and-set UPDATE on (status, version), so two
callers racing on the same request cannot both win.
"""
import logging
from datetime import datetime
from typing import Optional, List, Tuple, Dict, FrozenSet
from sqlalchemy import select, func, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError, InvalidStateError, AuthorizationError
from app.models import (
    ServiceRequest,
    ServiceRequestStatus,
    WasteCollection,
    Payment,
    Dispute,
    Notification,
    User,
    Role,
    NotificationType,
)
from app.schemas.service_request import ServiceRequestCreate, ServiceRequestUpdate, ServiceRequestFilter
from app.services.caller import Caller
from app.services.notifications import notify

logger = logging.getLogger(__name__)

S = ServiceRequestStatus

ALLOWED_TRANSITIONS: Dict[ServiceRequestStatus, FrozenSet[ServiceRequestStatus]] = {
    S.PENDING: frozenset({S.ACCEPTED, S.REJECTED, S.CANCELLED}),
    S.ACCEPTED: frozenset({S.IN_PROGRESS, S.REJECTED, S.CANCELLED}),
    S.IN_PROGRESS: frozenset({S.COMPLETED, S.CANCELLED}),
    S.COMPLETED: frozenset(),
    S.REJECTED: frozenset(),
    S.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)


def can_transition(current: ServiceRequestStatus, target: ServiceRequestStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[ServiceRequestStatus(current)]


# ============================================================================
# Helpers
# ============================================================================

async def _load_request(db: AsyncSession, request_id: str) -> ServiceRequest:
    result = await db.execute(select(ServiceRequest).where(ServiceRequest.id == request_id))
    request = result.scalar_one_or_none()
    if not request:
        raise NotFoundError("Service request", request_id)
    return request


async def _load_user(db: AsyncSession, user_id: str, role: Role, entity: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id, User.role == role.value))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError(entity, user_id)
    return user


def _require_assigned(request: ServiceRequest, caller: Caller) -> None:
    if request.collector_id != caller.user_id:
        raise AuthorizationError("Service request is not assigned to this collector")


async def _require_manager_scope(db: AsyncSession, caller: Caller, municipality_id: Optional[str]) -> None:
    """Municipal managers only act on requests of their own municipality"""
    if caller.role != Role.MUNICIPAL_MANAGER:
        return
    manager = await _load_user(db, caller.user_id, Role.MUNICIPAL_MANAGER, "Municipal manager")
    if manager.municipality_id != municipality_id:
        raise AuthorizationError("Service request belongs to another municipality")


async def _transition(
    db: AsyncSession,
    request: ServiceRequest,
    target: ServiceRequestStatus,
    allow_same: bool = False,
    **values,
) -> ServiceRequest:
    """
    Moves `request` to `target` with a compare-and-set on the status and
    version the caller read. Zero matched rows means someone else moved the
    request first.
    """
    current = ServiceRequestStatus(request.status)
    if not (allow_same and current == target) and not can_transition(current, target):
        raise InvalidStateError(
            f"Service request {request.id} cannot move from {current.value} to {target.value}"
        )

    result = await db.execute(
        update(ServiceRequest)
        .where(
            ServiceRequest.id == request.id,
            ServiceRequest.status == current.value,
            ServiceRequest.version == request.version,
        )
        .values(
            status=target.value,
            version=request.version + 1,
            updated_at=datetime.utcnow(),
            **values,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(f"Lost update on service request {request.id} ({current.value} -> {target.value})")
        raise InvalidStateError(f"Service request {request.id} was modified by another operation")

    await db.refresh(request)
    logger.info(f"Service request {request.id}: {current.value} -> {target.value}")
    return request


# ============================================================================
# Queries
# ============================================================================

async def get_service_request(db: AsyncSession, caller: Caller, request_id: str) -> ServiceRequest:
    request = await _load_request(db, request_id)
    if caller.role == Role.HOUSEHOLD and request.household_id != caller.user_id:
        raise AuthorizationError("Service request belongs to another household")
    if caller.role == Role.MUNICIPAL_MANAGER:
        await _require_manager_scope(db, caller, request.municipality_id)
    return request


async def list_service_requests(
    db: AsyncSession,
    caller: Caller,
    filters: ServiceRequestFilter,
) -> Tuple[List[ServiceRequest], int]:
    """Filtered, paged listing; households only ever see their own requests"""
    conditions = []
    if caller.role == Role.HOUSEHOLD:
        conditions.append(ServiceRequest.household_id == caller.user_id)
    elif filters.household_id:
        conditions.append(ServiceRequest.household_id == filters.household_id)

    if caller.role == Role.MUNICIPAL_MANAGER:
        manager = await _load_user(db, caller.user_id, Role.MUNICIPAL_MANAGER, "Municipal manager")
        conditions.append(ServiceRequest.municipality_id == manager.municipality_id)
    elif filters.municipality_id:
        conditions.append(ServiceRequest.municipality_id == filters.municipality_id)

    if filters.status:
        conditions.append(ServiceRequest.status == filters.status.value)
    if filters.collector_id:
        conditions.append(ServiceRequest.collector_id == filters.collector_id)
    if filters.start_date:
        conditions.append(ServiceRequest.created_at >= filters.start_date)
    if filters.end_date:
        conditions.append(ServiceRequest.created_at <= filters.end_date)

    total = (await db.execute(select(func.count(ServiceRequest.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(ServiceRequest)
        .where(*conditions)
        .order_by(ServiceRequest.created_at.desc())
        .offset(filters.page * filters.size)
        .limit(filters.size)
    )
    return list(result.scalars().all()), total


async def list_collector_queue(db: AsyncSession, caller: Caller) -> List[ServiceRequest]:
    """Requests the collector is working on plus open requests in their municipality"""
    caller.require(Role.COLLECTOR)
    collector = await _load_user(db, caller.user_id, Role.COLLECTOR, "Collector")

    result = await db.execute(
        select(ServiceRequest)
        .where(
            (
                (ServiceRequest.collector_id == collector.id)
                & ServiceRequest.status.in_([S.ACCEPTED.value, S.IN_PROGRESS.value])
            )
            | (
                (ServiceRequest.status == S.PENDING.value)
                & (ServiceRequest.municipality_id == collector.municipality_id)
            )
        )
        .order_by(ServiceRequest.preferred_date.asc(), ServiceRequest.created_at.asc())
    )
    return list(result.scalars().all())


async def list_waste_collections(
    db: AsyncSession,
    municipality_id: Optional[str] = None,
    collector_id: Optional[str] = None,
    household_id: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> List[WasteCollection]:
    conditions = []
    if municipality_id:
        conditions.append(WasteCollection.municipality_id == municipality_id)
    if collector_id:
        conditions.append(WasteCollection.collector_id == collector_id)
    if household_id:
        conditions.append(WasteCollection.household_id == household_id)
    if start_date:
        conditions.append(WasteCollection.collection_date >= start_date)
    if end_date:
        conditions.append(WasteCollection.collection_date <= end_date)

    result = await db.execute(
        select(WasteCollection).where(*conditions).order_by(WasteCollection.collection_date.desc())
    )
    return list(result.scalars().all())


# ============================================================================
# Household / administrative operations
# ============================================================================

async def create_service_request(db: AsyncSession, caller: Caller, data: ServiceRequestCreate) -> ServiceRequest:
    if caller.role == Role.HOUSEHOLD:
        household_id = caller.user_id
    elif caller.role in (Role.ADMIN, Role.MUNICIPAL_MANAGER):
        if not data.household_id:
            raise ValidationError("household_id is required", field="household_id")
        household_id = data.household_id
    else:
        raise AuthorizationError("Collectors cannot create service requests")

    result = await db.execute(
        select(User).where(User.id == household_id, User.role == Role.HOUSEHOLD.value)
    )
    household = result.scalar_one_or_none()
    if not household:
        raise ValidationError(f"Unknown household: {household_id}", field="household_id")
    await _require_manager_scope(db, caller, household.municipality_id)

    if not data.description or not data.description.strip():
        raise ValidationError("Description is required", field="description")
    if not data.address or not data.address.strip():
        raise ValidationError("Address is required", field="address")
    if data.estimated_volume is None or data.estimated_volume <= 0:
        raise ValidationError("Estimated volume must be greater than zero", field="estimated_volume")

    now = datetime.utcnow()
    request = ServiceRequest(
        description=data.description.strip(),
        waste_type=data.waste_type.value,
        estimated_volume=data.estimated_volume,
        preferred_date=data.preferred_date,
        address=data.address.strip(),
        phone_number=data.phone_number or household.phone_number,
        comment=data.comment,
        status=S.PENDING.value,
        version=0,
        household_id=household.id,
        collector_id=None,
        municipality_id=household.municipality_id,
        created_at=now,
        updated_at=now,
    )
    db.add(request)
    await db.flush()
    await db.refresh(request)

    logger.info(f"Service request {request.id} created for household {household.id}")
    return request


async def update_service_request(
    db: AsyncSession,
    caller: Caller,
    request_id: str,
    data: ServiceRequestUpdate,
) -> ServiceRequest:
    """Households may edit their request until a collector picks it up"""
    request = await get_service_request(db, caller, request_id)
    if caller.role == Role.COLLECTOR:
        raise AuthorizationError("Collectors cannot edit service requests")
    if request.status != S.PENDING.value:
        raise InvalidStateError(f"Service request {request.id} can only be edited while PENDING")

    changes = data.model_dump(exclude_unset=True)
    if "description" in changes and not (changes["description"] or "").strip():
        raise ValidationError("Description is required", field="description")
    if "address" in changes and not (changes["address"] or "").strip():
        raise ValidationError("Address is required", field="address")
    if "estimated_volume" in changes and (changes["estimated_volume"] is None or changes["estimated_volume"] <= 0):
        raise ValidationError("Estimated volume must be greater than zero", field="estimated_volume")
    if "waste_type" in changes:
        if changes["waste_type"] is None:
            raise ValidationError("Waste type is required", field="waste_type")
        changes["waste_type"] = changes["waste_type"].value

    for field, value in changes.items():
        setattr(request, field, value)
    await db.flush()
    await db.refresh(request)
    return request


async def delete_service_request(db: AsyncSession, caller: Caller, request_id: str) -> None:
    caller.require(Role.ADMIN)
    request = await _load_request(db, request_id)
    if request.status == S.COMPLETED.value:
        raise InvalidStateError("Completed service requests are kept with their collection record")

    for label, model in (("payments", Payment), ("disputes", Dispute)):
        linked = await db.execute(
            select(func.count(model.id)).where(model.service_request_id == request.id)
        )
        if linked.scalar():
            raise ValidationError(f"Service request still has {label}; cancel it instead")

    await db.execute(delete(Notification).where(Notification.service_request_id == request.id))
    await db.delete(request)
    await db.flush()
    logger.info(f"Service request {request_id} deleted by {caller.user_id}")


async def cancel_service_request(db: AsyncSession, caller: Caller, request_id: str) -> ServiceRequest:
    caller.require(Role.HOUSEHOLD, Role.ADMIN, Role.MUNICIPAL_MANAGER)
    request = await get_service_request(db, caller, request_id)

    if ServiceRequestStatus(request.status) in TERMINAL_STATUSES:
        raise InvalidStateError(f"Service request {request.id} is already {request.status}")

    await _transition(db, request, S.CANCELLED)

    if request.collector_id:
        await notify(
            db,
            recipient_id=request.collector_id,
            subject="Service Request Cancelled",
            message=f"The service request at {request.address} has been cancelled.",
            notification_type=NotificationType.SERVICE_REQUEST_UPDATE,
            service_request_id=request.id,
        )
    if caller.role != Role.HOUSEHOLD:
        await notify(
            db,
            recipient_id=request.household_id,
            subject="Service Request Cancelled",
            message="Your service request has been cancelled by the operations team.",
            notification_type=NotificationType.SERVICE_REQUEST_UPDATE,
            service_request_id=request.id,
        )
    return request


async def assign_collector(db: AsyncSession, caller: Caller, request_id: str, collector_id: str) -> ServiceRequest:
    """Administrative override: (re)assigns a collector and marks the request ACCEPTED"""
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    request = await _load_request(db, request_id)
    await _require_manager_scope(db, caller, request.municipality_id)
    collector = await _load_user(db, collector_id, Role.COLLECTOR, "Collector")

    if request.status not in (S.PENDING.value, S.ACCEPTED.value):
        raise InvalidStateError(
            f"Service request {request.id} is {request.status}; only PENDING or ACCEPTED requests can be assigned"
        )

    await _transition(db, request, S.ACCEPTED, allow_same=True, collector_id=collector.id)

    await notify(
        db,
        recipient_id=collector.id,
        subject="New Service Request Assigned",
        message=f"You have been assigned a pickup at {request.address}.",
        notification_type=NotificationType.NEW_SERVICE_REQUEST,
        service_request_id=request.id,
    )
    await notify(
        db,
        recipient_id=request.household_id,
        subject="Service Request Accepted",
        message=f"Collector {collector.full_name} has been assigned to your request.",
        notification_type=NotificationType.SERVICE_REQUEST_UPDATE,
        service_request_id=request.id,
    )
    return request


# ============================================================================
# Collector operations
# ============================================================================

async def accept_service_request(
    db: AsyncSession,
    caller: Caller,
    request_id: str,
    note: Optional[str] = None,
) -> ServiceRequest:
    caller.require(Role.COLLECTOR)
    request = await _load_request(db, request_id)
    collector = await _load_user(db, caller.user_id, Role.COLLECTOR, "Collector")

    if request.status != S.PENDING.value:
        raise InvalidStateError(f"Service request {request.id} is {request.status}, expected PENDING")

    extra = {"comment": note} if note else {}
    await _transition(db, request, S.ACCEPTED, collector_id=collector.id, **extra)

    await notify(
        db,
        recipient_id=request.household_id,
        subject="Service Request Accepted",
        message=f"Your service request has been accepted by {collector.full_name}.",
        notification_type=NotificationType.SERVICE_REQUEST_UPDATE,
        service_request_id=request.id,
    )
    return request


async def reject_service_request(
    db: AsyncSession,
    caller: Caller,
    request_id: str,
    reason: str,
) -> ServiceRequest:
    caller.require(Role.COLLECTOR)
    request = await _load_request(db, request_id)

    if request.status not in (S.PENDING.value, S.ACCEPTED.value):
        raise InvalidStateError(f"Service request {request.id} is {request.status} and cannot be rejected")
    if request.collector_id is not None:
        _require_assigned(request, caller)

    await _transition(db, request, S.REJECTED, comment=reason)

    await notify(
        db,
        recipient_id=request.household_id,
        subject="Service Request Rejected",
        message=f"Your service request has been rejected. Reason: {reason}",
        notification_type=NotificationType.SERVICE_REQUEST_UPDATE,
        service_request_id=request.id,
    )
    return request


async def start_service_request(db: AsyncSession, caller: Caller, request_id: str) -> ServiceRequest:
    caller.require(Role.COLLECTOR)
    request = await _load_request(db, request_id)

    if request.status != S.ACCEPTED.value:
        raise InvalidStateError(f"Service request {request.id} is {request.status}, expected ACCEPTED")
    _require_assigned(request, caller)

    await _transition(db, request, S.IN_PROGRESS)

    await notify(
        db,
        recipient_id=request.household_id,
        subject="Service Request In Progress",
        message="The collector is on the way to your address.",
        notification_type=NotificationType.SERVICE_REQUEST_UPDATE,
        service_request_id=request.id,
    )
    return request


async def complete_service_request(
    db: AsyncSession,
    caller: Caller,
    request_id: str,
    note: Optional[str],
    actual_weight: float,
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
) -> WasteCollection:
    """
    Completes the request and writes its WasteCollection in the same unit of
    work. Returns the collection record.
    """
    caller.require(Role.COLLECTOR)
    request = await _load_request(db, request_id)

    if request.status != S.IN_PROGRESS.value:
        raise InvalidStateError(f"Service request {request.id} is {request.status}, expected IN_PROGRESS")
    _require_assigned(request, caller)
    if actual_weight is None or actual_weight <= 0:
        raise ValidationError("Actual weight must be greater than zero", field="actual_weight")

    extra = {"comment": note} if note else {}
    await _transition(db, request, S.COMPLETED, **extra)

    collection = WasteCollection(
        collection_date=datetime.utcnow(),
        actual_weight=actual_weight,
        latitude=latitude,
        longitude=longitude,
        address=request.address,
        collector_comment=note,
        status=S.COMPLETED.value,
        service_request_id=request.id,
        collector_id=request.collector_id,
        household_id=request.household_id,
        municipality_id=request.municipality_id,
    )
    db.add(collection)
    await db.flush()

    await notify(
        db,
        recipient_id=request.household_id,
        subject="Service Request Completed",
        message=f"Your pickup has been completed ({actual_weight:g} kg collected).",
        notification_type=NotificationType.SERVICE_REQUEST_UPDATE,
        service_request_id=request.id,
    )
    logger.info(f"Collection {collection.id} recorded for service request {request.id}")
    return collection
