"""
WasteCollect Server - Notifications API
A caller only ever sees the notifications addressed to them
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Role, NotificationType
from app.schemas import NotificationResponse, NotificationPage, UnreadCountResponse
from app.api.auth import get_current_caller, require_roles
from app.services.caller import Caller
from app.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=NotificationPage)
async def list_notifications(
    is_read: Optional[bool] = Query(None),
    notification_type: Optional[NotificationType] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    items, total = await notification_service.list_notifications(
        db, caller, is_read, notification_type, page, size
    )
    return {"items": [n.to_dict() for n in items], "total": total, "page": page, "size": size}


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return UnreadCountResponse(unread=await notification_service.unread_count(db, caller))


@router.get("/latest-alert", response_model=Optional[NotificationResponse])
async def get_latest_alert(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    alert = await notification_service.latest_unread_alert(db, caller)
    return alert.to_dict() if alert else None


@router.patch("/read-all")
async def mark_all_as_read(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    updated = await notification_service.mark_all_as_read(db, caller)
    return {"message": "Notifications marked as read", "updated": updated}


@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    notification = await notification_service.get_notification(db, caller, notification_id)
    return notification.to_dict()


@router.patch("/{notification_id}/read", response_model=NotificationResponse)
async def mark_as_read(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    notification = await notification_service.mark_as_read(db, caller, notification_id)
    return notification.to_dict()


@router.patch("/{notification_id}/unread", response_model=NotificationResponse)
async def mark_as_unread(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    notification = await notification_service.mark_as_unread(db, caller, notification_id)
    return notification.to_dict()


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.ADMIN))
):
    await notification_service.delete_notification(db, caller, notification_id)
    return {"message": "Notification deleted successfully"}
