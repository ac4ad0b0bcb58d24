"""
WasteCollect Server - User Schemas
The role payload is a union discriminated on `role`
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional, Literal, Union, List, Annotated
from datetime import datetime

from app.models.enums import Role, HousingType, CollectorStatus


class HouseholdProfileSchema(BaseModel):
    role: Literal["HOUSEHOLD"] = "HOUSEHOLD"
    number_of_members: Optional[int] = None
    housing_type: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool = True
    collection_preferences: Optional[str] = None
    municipality_id: Optional[str] = None

    class Config:
        from_attributes = True


class CollectorProfileSchema(BaseModel):
    role: Literal["COLLECTOR"] = "COLLECTOR"
    collector_code: Optional[str] = None
    collector_status: Optional[str] = None
    alert_threshold: Optional[int] = None
    municipality_id: Optional[str] = None

    class Config:
        from_attributes = True


class ManagerProfileSchema(BaseModel):
    role: Literal["MUNICIPAL_MANAGER"] = "MUNICIPAL_MANAGER"
    job_title: Optional[str] = None
    municipality_id: Optional[str] = None

    class Config:
        from_attributes = True


class AdminProfileSchema(BaseModel):
    role: Literal["ADMIN"] = "ADMIN"
    department: Optional[str] = None

    class Config:
        from_attributes = True


ProfileSchema = Annotated[
    Union[HouseholdProfileSchema, CollectorProfileSchema, ManagerProfileSchema, AdminProfileSchema],
    Field(discriminator="role"),
]


class UserCreate(BaseModel):
    """Account creation by an administrator; only the fields of `role` are kept"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Role
    phone_number: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    municipality_id: Optional[str] = None
    # Household
    number_of_members: Optional[int] = Field(None, ge=1)
    housing_type: Optional[HousingType] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    collection_preferences: Optional[str] = None
    # Collector
    collector_status: Optional[CollectorStatus] = None
    alert_threshold: Optional[int] = Field(None, ge=0)
    # Municipal manager
    job_title: Optional[str] = Field(None, max_length=100)
    # Admin
    department: Optional[str] = Field(None, max_length=100)


class UserUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8)
    phone_number: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    municipality_id: Optional[str] = None
    number_of_members: Optional[int] = Field(None, ge=1)
    housing_type: Optional[HousingType] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_active: Optional[bool] = None
    collection_preferences: Optional[str] = None
    collector_status: Optional[CollectorStatus] = None
    alert_threshold: Optional[int] = Field(None, ge=0)
    job_title: Optional[str] = Field(None, max_length=100)
    department: Optional[str] = Field(None, max_length=100)


class UserResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone_number: Optional[str] = None
    address: Optional[str] = None
    role: str
    enabled: bool = True
    locked: bool = False
    municipality_id: Optional[str] = None
    municipality_name: Optional[str] = None
    profile: ProfileSchema
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UserPage(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    size: int
