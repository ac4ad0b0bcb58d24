"""
WasteCollect Server - Service Request Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.models.enums import WasteType, ServiceRequestStatus


class ServiceRequestCreate(BaseModel):
    # Blank text and non-positive volumes are rejected by the service with a 400
    description: str
    waste_type: WasteType
    estimated_volume: float
    preferred_date: Optional[datetime] = None
    address: str
    phone_number: Optional[str] = Field(None, max_length=30)
    comment: Optional[str] = None
    household_id: Optional[str] = None  # admins create on behalf of a household


class ServiceRequestUpdate(BaseModel):
    description: Optional[str] = None
    waste_type: Optional[WasteType] = None
    estimated_volume: Optional[float] = None
    preferred_date: Optional[datetime] = None
    address: Optional[str] = None
    phone_number: Optional[str] = Field(None, max_length=30)
    comment: Optional[str] = None


class ServiceRequestFilter(BaseModel):
    status: Optional[ServiceRequestStatus] = None
    household_id: Optional[str] = None
    collector_id: Optional[str] = None
    municipality_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = Field(0, ge=0)
    size: int = Field(20, ge=1, le=200)


class AcceptRequest(BaseModel):
    note: Optional[str] = None


class RejectRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class CompleteRequest(BaseModel):
    note: Optional[str] = None
    actual_weight: float = Field(..., gt=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class AssignCollectorRequest(BaseModel):
    collector_id: str


class ServiceRequestResponse(BaseModel):
    id: str
    description: str
    waste_type: str
    estimated_volume: float
    preferred_date: Optional[datetime] = None
    address: str
    phone_number: Optional[str] = None
    comment: Optional[str] = None
    status: str
    version: int = 0
    household_id: str
    household_name: Optional[str] = None
    collector_id: Optional[str] = None
    collector_name: Optional[str] = None
    municipality_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ServiceRequestPage(BaseModel):
    items: List[ServiceRequestResponse]
    total: int
    page: int
    size: int


class WasteCollectionResponse(BaseModel):
    id: str
    collection_date: datetime
    actual_weight: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    collector_comment: Optional[str] = None
    status: str
    service_request_id: str
    collector_id: Optional[str] = None
    household_id: Optional[str] = None
    municipality_id: Optional[str] = None

    class Config:
        from_attributes = True
