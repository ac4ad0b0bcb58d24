"""
WasteCollect Server - Municipality Model
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, BigInteger, Float

from app.database import Base


class Municipality(Base):
    """Municipality served by the platform"""
    __tablename__ = "municipalities"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    name = Column(String(255), nullable=False, unique=True, index=True)
    province = Column(String(100))
    country = Column(String(100))
    population = Column(BigInteger)
    waste_management_budget = Column(Float)

    enabled = Column(Boolean, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "province": self.province,
            "country": self.country,
            "population": self.population,
            "waste_management_budget": self.waste_management_budget,
            "enabled": self.enabled,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
