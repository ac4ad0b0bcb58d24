"""
WasteCollect Server - Municipalities API
Municipality CRUD and the manager-facing indicators
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Role
from app.schemas import MunicipalityCreate, MunicipalityUpdate, MunicipalityResponse
from app.schemas.metrics import (
    WasteCollectionData,
    UnderservedArea,
    MetricsAnalysis,
    ComparativeData,
    WasteMappingData,
    DetailedReport,
    PerformanceMetrics,
)
from app.api.auth import get_current_caller, require_roles
from app.services.caller import Caller
from app.services import municipalities as municipality_service
from app.services import metrics as metrics_service

router = APIRouter(prefix="/municipalities", tags=["Municipalities"])

staff = require_roles(Role.ADMIN, Role.MUNICIPAL_MANAGER)


@router.get("", response_model=List[MunicipalityResponse])
async def list_municipalities(
    search: Optional[str] = Query(None),
    enabled: Optional[bool] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    items, _ = await municipality_service.list_municipalities(db, search, enabled, page, size)
    return [await municipality_service.to_response(db, m) for m in items]


@router.post("", response_model=MunicipalityResponse, status_code=status.HTTP_201_CREATED)
async def create_municipality(
    data: MunicipalityCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.ADMIN))
):
    municipality = await municipality_service.create_municipality(db, caller, data)
    return await municipality_service.to_response(db, municipality)


@router.get("/{municipality_id}", response_model=MunicipalityResponse)
async def get_municipality(
    municipality_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    municipality = await municipality_service.get_municipality(db, municipality_id)
    return await municipality_service.to_response(db, municipality)


@router.put("/{municipality_id}", response_model=MunicipalityResponse)
async def update_municipality(
    municipality_id: str,
    data: MunicipalityUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    municipality = await municipality_service.update_municipality(db, caller, municipality_id, data)
    return await municipality_service.to_response(db, municipality)


@router.delete("/{municipality_id}")
async def delete_municipality(
    municipality_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.ADMIN))
):
    await municipality_service.delete_municipality(db, caller, municipality_id)
    return {"message": "Municipality deleted successfully"}


# ============================================================================
# Indicators (default window: last 30 days)
# ============================================================================

@router.get("/{municipality_id}/collection-data", response_model=WasteCollectionData)
async def get_collection_data(
    municipality_id: str,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    await municipality_service.require_access(db, caller, municipality_id)
    start, end = metrics_service.resolve_window(start_date, end_date)
    return await metrics_service.waste_collection_data(db, municipality_id, start, end)


@router.get("/{municipality_id}/underserved-areas", response_model=List[UnderservedArea])
async def get_underserved_areas(
    municipality_id: str,
    days_threshold: Optional[int] = Query(None, ge=0),
    min_pending_requests: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    await municipality_service.require_access(db, caller, municipality_id)
    return await metrics_service.identify_underserved_areas(
        db, municipality_id, days_threshold, min_pending_requests
    )


@router.get("/{municipality_id}/metrics-analysis", response_model=MetricsAnalysis)
async def get_metrics_analysis(
    municipality_id: str,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    await municipality_service.require_access(db, caller, municipality_id)
    start, end = metrics_service.resolve_window(start_date, end_date)
    return await metrics_service.metrics_analysis(db, municipality_id, start, end)


@router.get("/{municipality_id}/comparative-data", response_model=ComparativeData)
async def get_comparative_data(
    municipality_id: str,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    await municipality_service.require_access(db, caller, municipality_id)
    start, end = metrics_service.resolve_window(start_date, end_date)
    return await metrics_service.comparative_data(db, municipality_id, start, end)


@router.get("/{municipality_id}/waste-mapping", response_model=WasteMappingData)
async def get_waste_mapping(
    municipality_id: str,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    await municipality_service.require_access(db, caller, municipality_id)
    start, end = metrics_service.resolve_window(start_date, end_date)
    return await metrics_service.waste_mapping_data(db, municipality_id, start, end)


@router.get("/{municipality_id}/detailed-report", response_model=DetailedReport)
async def get_detailed_report(
    municipality_id: str,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    days_threshold: Optional[int] = Query(None, ge=0),
    min_pending_requests: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    await municipality_service.require_access(db, caller, municipality_id)
    start, end = metrics_service.resolve_window(start_date, end_date)
    return await metrics_service.detailed_report(
        db, municipality_id, start, end, days_threshold, min_pending_requests
    )


@router.get("/{municipality_id}/performance", response_model=PerformanceMetrics)
async def get_performance(
    municipality_id: str,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    await municipality_service.require_access(db, caller, municipality_id)
    start, end = metrics_service.resolve_window(start_date, end_date)
    return await metrics_service.performance_metrics(db, start, end, municipality_id)
