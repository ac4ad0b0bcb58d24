"""
WasteCollect Server - Report Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.enums import ReportType


class ReportConfig(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    report_type: ReportType = ReportType.MUNICIPALITY
    municipality_id: Optional[str] = None
    start_date: datetime
    end_date: datetime
    days_threshold: Optional[int] = Field(None, ge=0)
    min_pending_requests: Optional[int] = Field(None, ge=0)


class ReportResponse(BaseModel):
    id: str
    title: str
    report_type: str
    status: str
    error_message: Optional[str] = None
    municipality_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_by_id: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True
