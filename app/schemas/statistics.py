"""
WasteCollect Server - Statistics Schemas
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.models.enums import PeriodType


class StatisticsSnapshotRequest(BaseModel):
    period_type: PeriodType
    start_date: datetime
    end_date: datetime
    municipality_id: Optional[str] = None


class StatisticsResponse(BaseModel):
    id: str
    period_type: str
    start_date: datetime
    end_date: datetime
    total_collections: int = 0
    total_waste_collected: float = 0.0
    average_waste_per_collection: float = 0.0
    active_households: int = 0
    active_collectors: int = 0
    municipality_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
