"""
WasteCollect Server - Waste Collection Model
Record of a pickup actually performed, written once when a request completes
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Float, ForeignKey

from app.database import Base
from .enums import ServiceRequestStatus


class WasteCollection(Base):
    """Completed pickup, one per service request"""
    __tablename__ = "waste_collections"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    collection_date = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    actual_weight = Column(Float)
    latitude = Column(Float)
    longitude = Column(Float)
    address = Column(Text)
    collector_comment = Column(Text)
    status = Column(String(20), default=ServiceRequestStatus.COMPLETED.value)

    service_request_id = Column(
        String(36), ForeignKey("service_requests.id"), nullable=False, unique=True
    )
    collector_id = Column(String(36), ForeignKey("users.id"), index=True)
    household_id = Column(String(36), ForeignKey("users.id"), index=True)
    municipality_id = Column(String(36), ForeignKey("municipalities.id"), index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "collection_date": self.collection_date.isoformat() if self.collection_date else None,
            "actual_weight": self.actual_weight,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "collector_comment": self.collector_comment,
            "status": self.status,
            "service_request_id": self.service_request_id,
            "collector_id": self.collector_id,
            "household_id": self.household_id,
            "municipality_id": self.municipality_id,
        }
