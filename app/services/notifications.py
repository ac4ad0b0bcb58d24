"""
WasteCollect Server - Notification Dispatcher
Persists notifications for state changes and administrative broadcasts
"""
import logging
from datetime import datetime
from typing import Optional, List, Tuple, Union
from sqlalchemy import select, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError, AuthorizationError
from app.models import Notification, NotificationType, User, Role
from app.schemas.notification import Audience, BulkNotificationRequest, DeliveryEntry, DispatchResult
from app.services.caller import Caller

logger = logging.getLogger(__name__)


async def notify(
    db: AsyncSession,
    recipient_id: str,
    subject: str,
    message: str,
    notification_type: Union[NotificationType, str],
    service_request_id: Optional[str] = None,
    payment_id: Optional[str] = None,
    dispute_id: Optional[str] = None,
) -> Notification:
    """Creates one notification in the caller's unit of work"""
    notification = Notification(
        recipient_id=recipient_id,
        subject=subject,
        message=message,
        notification_type=NotificationType(notification_type).value,
        service_request_id=service_request_id,
        payment_id=payment_id,
        dispute_id=dispute_id,
        is_read=False,
    )
    db.add(notification)
    await db.flush()
    logger.debug(f"Notification '{subject}' queued for {recipient_id}")
    return notification


async def _resolve_audience(db: AsyncSession, request: BulkNotificationRequest) -> Tuple[List[str], List[str]]:
    """Returns (known recipient ids, unknown ids)"""
    if request.audience == Audience.ALL:
        result = await db.execute(select(User.id).where(User.enabled == True))
        return list(result.scalars().all()), []

    if request.audience == Audience.ROLE:
        if request.role is None:
            raise ValidationError("A role is required for the ROLE audience", field="role")
        result = await db.execute(
            select(User.id).where(User.role == request.role.value, User.enabled == True)
        )
        return list(result.scalars().all()), []

    if not request.user_ids:
        raise ValidationError("user_ids are required for the SPECIFIC_USERS audience", field="user_ids")

    # Keep the caller's order, drop duplicates
    wanted = list(dict.fromkeys(request.user_ids))
    result = await db.execute(select(User.id).where(User.id.in_(wanted)))
    known = set(result.scalars().all())
    return [uid for uid in wanted if uid in known], [uid for uid in wanted if uid not in known]


async def send_notifications(db: AsyncSession, caller: Caller, request: BulkNotificationRequest) -> DispatchResult:
    """
    Best-effort broadcast: each recipient gets its own savepoint, so one
    failing insert is recorded in the result and the others still go out.
    """
    caller.require(Role.ADMIN)
    recipients, unknown = await _resolve_audience(db, request)

    dispatch = DispatchResult()
    for user_id in unknown:
        logger.warning(f"Bulk notification skipped unknown user {user_id}")
        dispatch.entries.append(DeliveryEntry(user_id=user_id, delivered=False, error="User not found"))

    for user_id in recipients:
        try:
            async with db.begin_nested():
                db.add(Notification(
                    recipient_id=user_id,
                    subject=request.subject,
                    message=request.message,
                    notification_type=request.notification_type.value,
                    is_read=False,
                ))
            dispatch.entries.append(DeliveryEntry(user_id=user_id, delivered=True))
        except SQLAlchemyError as e:
            logger.error(f"Bulk notification to {user_id} failed: {e}")
            dispatch.entries.append(DeliveryEntry(user_id=user_id, delivered=False, error=str(e)))

    logger.info(
        f"Bulk notification '{request.subject}' ({request.audience.value}): "
        f"{dispatch.delivered_count} delivered, {dispatch.failed_count} failed"
    )
    return dispatch


# ============================================================================
# Recipient operations
# ============================================================================

async def list_notifications(
    db: AsyncSession,
    caller: Caller,
    is_read: Optional[bool] = None,
    notification_type: Optional[NotificationType] = None,
    page: int = 0,
    size: int = 20,
) -> Tuple[List[Notification], int]:
    filters = [Notification.recipient_id == caller.user_id]
    if is_read is not None:
        filters.append(Notification.is_read == is_read)
    if notification_type is not None:
        filters.append(Notification.notification_type == notification_type.value)

    total = (await db.execute(select(func.count(Notification.id)).where(*filters))).scalar() or 0
    result = await db.execute(
        select(Notification)
        .where(*filters)
        .order_by(Notification.created_at.desc())
        .offset(page * size)
        .limit(size)
    )
    return list(result.scalars().all()), total


async def get_notification(db: AsyncSession, caller: Caller, notification_id: str) -> Notification:
    result = await db.execute(select(Notification).where(Notification.id == notification_id))
    notification = result.scalar_one_or_none()
    if not notification:
        raise NotFoundError("Notification", notification_id)
    if notification.recipient_id != caller.user_id and not caller.is_admin:
        raise AuthorizationError("Notification belongs to another user")
    return notification


async def mark_as_read(db: AsyncSession, caller: Caller, notification_id: str) -> Notification:
    notification = await get_notification(db, caller, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        await db.flush()
    return notification


async def mark_as_unread(db: AsyncSession, caller: Caller, notification_id: str) -> Notification:
    notification = await get_notification(db, caller, notification_id)
    notification.is_read = False
    notification.read_at = None
    await db.flush()
    return notification


async def mark_all_as_read(db: AsyncSession, caller: Caller) -> int:
    result = await db.execute(
        update(Notification)
        .where(Notification.recipient_id == caller.user_id, Notification.is_read == False)
        .values(is_read=True, read_at=datetime.utcnow())
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def delete_notification(db: AsyncSession, caller: Caller, notification_id: str) -> None:
    caller.require(Role.ADMIN)
    notification = await get_notification(db, caller, notification_id)
    await db.delete(notification)
    await db.flush()
    logger.info(f"Notification {notification_id} deleted by {caller.user_id}")


async def unread_count(db: AsyncSession, caller: Caller) -> int:
    result = await db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_id == caller.user_id,
            Notification.is_read == False,
        )
    )
    return result.scalar() or 0


async def latest_unread_alert(db: AsyncSession, caller: Caller) -> Optional[Notification]:
    result = await db.execute(
        select(Notification)
        .where(
            Notification.recipient_id == caller.user_id,
            Notification.is_read == False,
            Notification.notification_type == NotificationType.ALERT.value,
        )
        .order_by(Notification.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()
