"""
WasteCollect Server - Statistics API
Stored period snapshots
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Role, PeriodType
from app.schemas import StatisticsSnapshotRequest, StatisticsResponse
from app.api.auth import require_roles
from app.services.caller import Caller
from app.services import statistics as statistics_service

router = APIRouter(prefix="/statistics", tags=["Statistics"])

staff = require_roles(Role.ADMIN, Role.MUNICIPAL_MANAGER)


@router.post("/snapshots", response_model=StatisticsResponse, status_code=status.HTTP_201_CREATED)
async def create_snapshot(
    data: StatisticsSnapshotRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    snapshot = await statistics_service.snapshot_statistics(
        db, caller, data.period_type, data.start_date, data.end_date, data.municipality_id
    )
    return snapshot.to_dict()


@router.get("/latest", response_model=Optional[StatisticsResponse])
async def get_latest(
    municipality_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    snapshot = await statistics_service.latest_statistics(db, municipality_id)
    return snapshot.to_dict() if snapshot else None


@router.get("/by-period/{period_type}", response_model=List[StatisticsResponse])
async def get_by_period(
    period_type: PeriodType,
    municipality_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    snapshots = await statistics_service.statistics_by_period(db, period_type, municipality_id)
    return [s.to_dict() for s in snapshots]
