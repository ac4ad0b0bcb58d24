"""
WasteCollect Server - Dispute Model
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey

from app.database import Base
from .enums import DisputeStatus


class Dispute(Base):
    """Complaint raised by a user about a request or a payment"""
    __tablename__ = "disputes"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), default=DisputeStatus.OPEN.value, nullable=False, index=True)
    resolution_note = Column(Text)
    read = Column(Boolean, default=False)

    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    service_request_id = Column(String(36), ForeignKey("service_requests.id"))
    payment_id = Column(String(36), ForeignKey("payments.id"))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "resolution_note": self.resolution_note,
            "read": self.read,
            "user_id": self.user_id,
            "service_request_id": self.service_request_id,
            "payment_id": self.payment_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
