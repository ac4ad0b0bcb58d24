"""
WasteCollect Server - Dispute Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.enums import DisputeStatus


class DisputeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    service_request_id: Optional[str] = None
    payment_id: Optional[str] = None


class DisputeResolve(BaseModel):
    status: DisputeStatus
    note: Optional[str] = None


class DisputeResponse(BaseModel):
    id: str
    title: str
    description: str
    status: str
    resolution_note: Optional[str] = None
    read: bool = False
    user_id: str
    service_request_id: Optional[str] = None
    payment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
