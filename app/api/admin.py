"""
WasteCollect Server - Admin API
User management, platform dashboards, bulk notifications and reports
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Role
from app.schemas import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserPage,
    BulkNotificationRequest,
    ReportConfig,
    ReportResponse,
)
from app.schemas.metrics import GlobalStatistics, Activity, PerformanceMetrics
from app.api.auth import require_roles
from app.services.caller import Caller
from app.services import users as user_service
from app.services import notifications as notification_service
from app.services import metrics as metrics_service
from app.services import reports as report_service
from app.utils.file_storage import FileStorage, get_file_storage

router = APIRouter(prefix="/admin", tags=["Admin"])

admin_only = require_roles(Role.ADMIN)
staff = require_roles(Role.ADMIN, Role.MUNICIPAL_MANAGER)


# ============================================================================
# Users
# ============================================================================

async def _user_page(db, caller, role, municipality_id, search, page, size):
    items, total = await user_service.list_users(db, caller, role, municipality_id, search, page, size)
    return {"items": [u.to_dict() for u in items], "total": total, "page": page, "size": size}


@router.get("/users", response_model=UserPage)
async def list_users(
    role: Optional[Role] = Query(None),
    municipality_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    return await _user_page(db, caller, role, municipality_id, search, page, size)


@router.get("/households", response_model=UserPage)
async def list_households(
    municipality_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    return await _user_page(db, caller, Role.HOUSEHOLD, municipality_id, search, page, size)


@router.get("/collectors", response_model=UserPage)
async def list_collectors(
    municipality_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    return await _user_page(db, caller, Role.COLLECTOR, municipality_id, search, page, size)


@router.get("/admins", response_model=UserPage)
async def list_admins(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    return await _user_page(db, caller, Role.ADMIN, None, None, page, size)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    user = await user_service.create_user(db, caller, data)
    return user.to_dict()


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    user = await user_service.get_user(db, user_id)
    return user.to_dict()


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    user = await user_service.update_user(db, caller, user_id, data)
    return user.to_dict()


@router.patch("/users/{user_id}/enable", response_model=UserResponse)
async def set_user_enabled(
    user_id: str,
    enabled: bool = Query(...),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    user = await user_service.set_enabled(db, caller, user_id, enabled)
    return user.to_dict()


@router.patch("/collectors/{user_id}/toggle-status", response_model=UserResponse)
async def toggle_collector_status(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    user = await user_service.toggle_collector_status(db, caller, user_id)
    return user.to_dict()


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    await user_service.delete_user(db, caller, user_id)
    return {"message": "User deleted successfully"}


# ============================================================================
# Dashboards
# ============================================================================

@router.get("/statistics", response_model=GlobalStatistics)
async def get_global_statistics(
    period: str = Query("WEEK"),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    """Platform counters over DAY, WEEK, MONTH or YEAR; anything else reads as WEEK"""
    return await metrics_service.global_statistics(db, period)


@router.get("/activities", response_model=List[Activity])
async def get_recent_activities(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    return await metrics_service.recent_activities(db, limit)


@router.get("/performance-metrics", response_model=PerformanceMetrics)
async def get_performance_metrics(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    start, end = metrics_service.resolve_window(start_date, end_date)
    return await metrics_service.performance_metrics(db, start, end)


@router.get("/underserved-count")
async def get_underserved_count(
    days_threshold: Optional[int] = Query(None, ge=0),
    min_pending_requests: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    count = await metrics_service.global_underserved_count(db, days_threshold, min_pending_requests)
    return {"underserved_households": count}


# ============================================================================
# Notifications
# ============================================================================

@router.post("/notifications/send")
async def send_notifications(
    data: BulkNotificationRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(admin_only)
):
    """Bulk send; one recipient failing does not stop the others"""
    result = await notification_service.send_notifications(db, caller, data)
    return {
        "delivered": result.delivered_count,
        "failed": result.failed_count,
        "entries": [e.model_dump() for e in result.entries],
    }


# ============================================================================
# Reports
# ============================================================================

@router.post("/reports", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def generate_report(
    config: ReportConfig,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff),
    storage: FileStorage = Depends(get_file_storage)
):
    report = await report_service.generate_report(db, caller, config, storage)
    return report.to_dict()


@router.get("/reports", response_model=List[ReportResponse])
async def list_reports(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    reports = await report_service.list_reports(db, caller)
    return [r.to_dict() for r in reports]


@router.get("/reports/{report_id}", response_model=ReportResponse)
async def get_report(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff)
):
    report = await report_service.get_report(db, caller, report_id)
    return report.to_dict()


@router.get("/reports/{report_id}/download")
async def download_report(
    report_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(staff),
    storage: FileStorage = Depends(get_file_storage)
):
    content, filename = await report_service.download_report(db, caller, report_id, storage)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
