"""
WasteCollect Server - Municipality Schemas
"""
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime


class ManagerCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone_number: Optional[str] = Field(None, max_length=30)
    job_title: Optional[str] = Field(None, max_length=100)


class MunicipalityCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    province: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    population: Optional[int] = Field(None, ge=0)
    waste_management_budget: Optional[float] = Field(None, ge=0)
    manager: Optional[ManagerCreate] = None


class MunicipalityUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    province: Optional[str] = Field(None, max_length=100)
    country: Optional[str] = Field(None, max_length=100)
    population: Optional[int] = Field(None, ge=0)
    waste_management_budget: Optional[float] = Field(None, ge=0)
    enabled: Optional[bool] = None


class MunicipalityResponse(BaseModel):
    id: str
    name: str
    province: Optional[str] = None
    country: Optional[str] = None
    population: Optional[int] = None
    waste_management_budget: Optional[float] = None
    enabled: bool = True
    manager_id: Optional[str] = None
    manager_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
