"""
WasteCollect Server - Collector Rating Model
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, ForeignKey, CheckConstraint

from app.database import Base


class CollectorRating(Base):
    """Household feedback on a completed request, at most one per request"""
    __tablename__ = "collector_ratings"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_collector_rating_range"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    collector_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    household_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    service_request_id = Column(
        String(36), ForeignKey("service_requests.id"), nullable=False, unique=True
    )

    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    rating_date = Column(DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "collector_id": self.collector_id,
            "household_id": self.household_id,
            "service_request_id": self.service_request_id,
            "rating": self.rating,
            "comment": self.comment,
            "rating_date": self.rating_date.isoformat() if self.rating_date else None,
        }
