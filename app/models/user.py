"""
WasteCollect Server - User Model
One table for every account; the role decides which payload columns are used
"""
import uuid
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Union
from sqlalchemy import Column, String, Boolean, DateTime, Text, Integer, Float, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base
from .enums import Role


@dataclass
class HouseholdProfile:
    role: str
    number_of_members: Optional[int]
    housing_type: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    is_active: bool
    collection_preferences: Optional[str]
    municipality_id: Optional[str]


@dataclass
class CollectorProfile:
    role: str
    collector_code: Optional[str]
    collector_status: Optional[str]
    alert_threshold: Optional[int]
    municipality_id: Optional[str]


@dataclass
class ManagerProfile:
    role: str
    job_title: Optional[str]
    municipality_id: Optional[str]


@dataclass
class AdminProfile:
    role: str
    department: Optional[str]


UserProfile = Union[HouseholdProfile, CollectorProfile, ManagerProfile, AdminProfile]


class User(Base):
    """Account of any role (household, collector, municipal manager, admin)"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    # Identity
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    phone_number = Column(String(30))
    address = Column(Text)

    role = Column(String(30), nullable=False, index=True)

    # Account flags
    enabled = Column(Boolean, default=True)
    locked = Column(Boolean, default=False)
    last_login_at = Column(DateTime)

    # Households, collectors and managers belong to a municipality
    municipality_id = Column(String(36), ForeignKey("municipalities.id"), index=True)
    municipality = relationship("Municipality", lazy="selectin")

    # Household payload
    number_of_members = Column(Integer)
    housing_type = Column(String(20))
    latitude = Column(Float)
    longitude = Column(Float)
    is_active = Column(Boolean, default=True)
    collection_preferences = Column(Text)

    # Collector payload
    collector_code = Column(String(20), unique=True)
    collector_status = Column(String(20), index=True)
    alert_threshold = Column(Integer)

    # Municipal manager payload
    job_title = Column(String(100))

    # Admin payload
    department = Column(String(100))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def profile(self) -> UserProfile:
        """Role-specific payload"""
        if self.role == Role.HOUSEHOLD.value:
            return HouseholdProfile(
                role=self.role,
                number_of_members=self.number_of_members,
                housing_type=self.housing_type,
                latitude=self.latitude,
                longitude=self.longitude,
                is_active=bool(self.is_active),
                collection_preferences=self.collection_preferences,
                municipality_id=self.municipality_id,
            )
        if self.role == Role.COLLECTOR.value:
            return CollectorProfile(
                role=self.role,
                collector_code=self.collector_code,
                collector_status=self.collector_status,
                alert_threshold=self.alert_threshold,
                municipality_id=self.municipality_id,
            )
        if self.role == Role.MUNICIPAL_MANAGER.value:
            return ManagerProfile(
                role=self.role,
                job_title=self.job_title,
                municipality_id=self.municipality_id,
            )
        if self.role == Role.ADMIN.value:
            return AdminProfile(role=self.role, department=self.department)
        raise ValueError(f"Unknown role: {self.role}")

    def to_dict(self):
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "address": self.address,
            "role": self.role,
            "enabled": self.enabled,
            "locked": self.locked,
            "municipality_id": self.municipality_id,
            "municipality_name": self.municipality.name if self.municipality else None,
            "profile": asdict(self.profile),
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
