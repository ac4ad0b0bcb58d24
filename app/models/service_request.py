"""
WasteCollect Server - Service Request Model
A household's pickup request and its lifecycle status
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, Float, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base
from .enums import ServiceRequestStatus


class ServiceRequest(Base):
    """Pickup request raised by a household"""
    __tablename__ = "service_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Request details
    description = Column(Text, nullable=False)
    waste_type = Column(String(20), nullable=False)
    estimated_volume = Column(Float, nullable=False)
    preferred_date = Column(DateTime)
    address = Column(Text, nullable=False)
    phone_number = Column(String(30))
    comment = Column(Text)

    # Lifecycle
    status = Column(String(20), default=ServiceRequestStatus.PENDING.value, nullable=False, index=True)
    version = Column(Integer, default=0, nullable=False)  # bumped on every status change

    # Parties
    household_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    household = relationship("User", foreign_keys=[household_id], lazy="selectin")

    collector_id = Column(String(36), ForeignKey("users.id"), index=True)
    collector = relationship("User", foreign_keys=[collector_id], lazy="selectin")

    # Copied from the household at creation
    municipality_id = Column(String(36), ForeignKey("municipalities.id"), index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "description": self.description,
            "waste_type": self.waste_type,
            "estimated_volume": self.estimated_volume,
            "preferred_date": self.preferred_date.isoformat() if self.preferred_date else None,
            "address": self.address,
            "phone_number": self.phone_number,
            "comment": self.comment,
            "status": self.status,
            "version": self.version,
            "household_id": self.household_id,
            "household_name": self.household.full_name if self.household else None,
            "collector_id": self.collector_id,
            "collector_name": self.collector.full_name if self.collector else None,
            "municipality_id": self.municipality_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
