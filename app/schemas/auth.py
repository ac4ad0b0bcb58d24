"""
WasteCollect Server - Auth Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional

from app.models.enums import HousingType


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


class HouseholdRegisterRequest(BaseModel):
    """Self-registration of a household account"""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone_number: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = None
    municipality_id: str
    number_of_members: Optional[int] = Field(None, ge=1)
    housing_type: Optional[HousingType] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    collection_preferences: Optional[str] = None
