"""
WasteCollect Server - Notification Model
Rows are only ever created, marked read/unread, or deleted by an admin
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey

from app.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    recipient_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    notification_type = Column(String(30), nullable=False, index=True)

    is_read = Column(Boolean, default=False, index=True)
    read_at = Column(DateTime)

    # Optional links
    service_request_id = Column(String(36), ForeignKey("service_requests.id"))
    payment_id = Column(String(36), ForeignKey("payments.id"))
    dispute_id = Column(String(36), ForeignKey("disputes.id"))

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "recipient_id": self.recipient_id,
            "subject": self.subject,
            "message": self.message,
            "notification_type": self.notification_type,
            "is_read": self.is_read,
            "read_at": self.read_at.isoformat() if self.read_at else None,
            "service_request_id": self.service_request_id,
            "payment_id": self.payment_id,
            "dispute_id": self.dispute_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
