"""
WasteCollect Server - Statistics Model
Periodic snapshot of collection totals
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, ForeignKey

from app.database import Base


class Statistics(Base):
    __tablename__ = "statistics"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    period_type = Column(String(10), nullable=False, index=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)

    total_collections = Column(Integer, default=0)
    total_waste_collected = Column(Float, default=0.0)
    average_waste_per_collection = Column(Float, default=0.0)
    active_households = Column(Integer, default=0)
    active_collectors = Column(Integer, default=0)

    # Null for a platform-wide snapshot
    municipality_id = Column(String(36), ForeignKey("municipalities.id"), index=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "period_type": self.period_type,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "total_collections": self.total_collections,
            "total_waste_collected": self.total_waste_collected,
            "average_waste_per_collection": self.average_waste_per_collection,
            "active_households": self.active_households,
            "active_collectors": self.active_collectors,
            "municipality_id": self.municipality_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
