"""
WasteCollect Server - Rating Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class RatingCreate(BaseModel):
    service_request_id: str
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None


class RatingResponse(BaseModel):
    id: str
    collector_id: str
    household_id: str
    service_request_id: str
    rating: int
    comment: Optional[str] = None
    rating_date: Optional[datetime] = None

    class Config:
        from_attributes = True
