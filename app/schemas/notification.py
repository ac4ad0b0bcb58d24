"""
WasteCollect Server - Notification Schemas
"""
import enum
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.enums import Role, NotificationType


class Audience(str, enum.Enum):
    ALL = "ALL"
    ROLE = "ROLE"
    SPECIFIC_USERS = "SPECIFIC_USERS"


class NotificationResponse(BaseModel):
    id: str
    recipient_id: str
    subject: str
    message: str
    notification_type: str
    is_read: bool = False
    read_at: Optional[datetime] = None
    service_request_id: Optional[str] = None
    payment_id: Optional[str] = None
    dispute_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NotificationPage(BaseModel):
    items: List[NotificationResponse]
    total: int
    page: int
    size: int


class BulkNotificationRequest(BaseModel):
    subject: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    notification_type: NotificationType = NotificationType.INFO
    audience: Audience
    role: Optional[Role] = None
    user_ids: Optional[List[str]] = None


class DeliveryEntry(BaseModel):
    user_id: str
    delivered: bool
    error: Optional[str] = None


class DispatchResult(BaseModel):
    """Per-recipient outcome of a bulk send"""
    entries: List[DeliveryEntry] = []

    @property
    def delivered_count(self) -> int:
        return sum(1 for e in self.entries if e.delivered)

    @property
    def failed_count(self) -> int:
        return sum(1 for e in self.entries if not e.delivered)


class UnreadCountResponse(BaseModel):
    unread: int
