"""
WasteCollect Server - Disputes

    OPEN -> IN_PROGRESS | RESOLVED | CLOSED
    IN_PROGRESS -> RESOLVED | CLOSED
    RESOLVED -> CLOSED
"""
import logging
from typing import Optional, List, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError, InvalidStateError, AuthorizationError
from app.models import Dispute, DisputeStatus, ServiceRequest, Payment, Role, NotificationType
from app.services.caller import Caller
from app.services.notifications import notify

logger = logging.getLogger(__name__)

D = DisputeStatus

DISPUTE_TRANSITIONS = {
    D.OPEN: frozenset({D.IN_PROGRESS, D.RESOLVED, D.CLOSED}),
    D.IN_PROGRESS: frozenset({D.RESOLVED, D.CLOSED}),
    D.RESOLVED: frozenset({D.CLOSED}),
    D.CLOSED: frozenset(),
}


def can_transition_dispute(current: DisputeStatus, target: DisputeStatus) -> bool:
    return target in DISPUTE_TRANSITIONS[DisputeStatus(current)]


async def create_dispute(
    db: AsyncSession,
    caller: Caller,
    title: str,
    description: str,
    service_request_id: Optional[str] = None,
    payment_id: Optional[str] = None,
) -> Dispute:
    if not title or not title.strip():
        raise ValidationError("Title is required", field="title")
    if not description or not description.strip():
        raise ValidationError("Description is required", field="description")

    if service_request_id:
        result = await db.execute(select(ServiceRequest).where(ServiceRequest.id == service_request_id))
        request = result.scalar_one_or_none()
        if not request:
            raise NotFoundError("Service request", service_request_id)
        if caller.role == Role.HOUSEHOLD and request.household_id != caller.user_id:
            raise AuthorizationError("Service request belongs to another household")

    if payment_id:
        result = await db.execute(select(Payment).where(Payment.id == payment_id))
        payment = result.scalar_one_or_none()
        if not payment:
            raise NotFoundError("Payment", payment_id)
        if caller.role == Role.HOUSEHOLD and payment.household_id != caller.user_id:
            raise AuthorizationError("Payment belongs to another household")

    dispute = Dispute(
        title=title.strip(),
        description=description.strip(),
        status=D.OPEN.value,
        read=False,
        user_id=caller.user_id,
        service_request_id=service_request_id,
        payment_id=payment_id,
    )
    db.add(dispute)
    await db.flush()

    logger.info(f"Dispute {dispute.id} opened by {caller.user_id}")
    return dispute


async def get_dispute(db: AsyncSession, caller: Caller, dispute_id: str) -> Dispute:
    result = await db.execute(select(Dispute).where(Dispute.id == dispute_id))
    dispute = result.scalar_one_or_none()
    if not dispute:
        raise NotFoundError("Dispute", dispute_id)
    if dispute.user_id != caller.user_id and caller.role not in (Role.ADMIN, Role.MUNICIPAL_MANAGER):
        raise AuthorizationError("Dispute belongs to another user")
    return dispute


async def resolve_dispute(
    db: AsyncSession,
    caller: Caller,
    dispute_id: str,
    new_status: DisputeStatus,
    note: Optional[str] = None,
) -> Dispute:
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    dispute = await get_dispute(db, caller, dispute_id)

    current = DisputeStatus(dispute.status)
    if not can_transition_dispute(current, new_status):
        raise InvalidStateError(f"Dispute {dispute.id} cannot move from {current.value} to {new_status.value}")

    dispute.status = new_status.value
    if note is not None:
        dispute.resolution_note = note
    await db.flush()
    await db.refresh(dispute)

    await notify(
        db,
        recipient_id=dispute.user_id,
        subject=f"Dispute {new_status.value.replace('_', ' ').title()}",
        message=note or f"Your dispute '{dispute.title}' is now {new_status.value}.",
        notification_type=NotificationType.DISPUTE_RESOLUTION,
        dispute_id=dispute.id,
    )
    logger.info(f"Dispute {dispute.id}: {current.value} -> {new_status.value}")
    return dispute


async def list_disputes(
    db: AsyncSession,
    caller: Caller,
    status: Optional[DisputeStatus] = None,
    page: int = 0,
    size: int = 20,
) -> Tuple[List[Dispute], int]:
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    conditions = []
    if status is not None:
        conditions.append(Dispute.status == status.value)

    total = (await db.execute(select(func.count(Dispute.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(Dispute)
        .where(*conditions)
        .order_by(Dispute.created_at.desc())
        .offset(page * size)
        .limit(size)
    )
    return list(result.scalars().all()), total


async def disputes_for_user(db: AsyncSession, caller: Caller) -> List[Dispute]:
    result = await db.execute(
        select(Dispute).where(Dispute.user_id == caller.user_id).order_by(Dispute.created_at.desc())
    )
    return list(result.scalars().all())


async def mark_dispute_read(db: AsyncSession, caller: Caller, dispute_id: str) -> Dispute:
    dispute = await get_dispute(db, caller, dispute_id)
    dispute.read = True
    await db.flush()
    await db.refresh(dispute)
    return dispute
