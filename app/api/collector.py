"""
WasteCollect Server - Collector API
Work queue, request transitions and the collector dashboard
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Role, NotificationType, PeriodType
from app.schemas import (
    ServiceRequestResponse,
    AcceptRequest,
    RejectRequest,
    CompleteRequest,
    WasteCollectionResponse,
    RatingResponse,
    PaymentFilter,
    PaymentPage,
    NotificationResponse,
)
from app.schemas.metrics import CollectorDashboard, CollectorPerformance, CollectorObjectives
from app.api.auth import require_roles
from app.services.caller import Caller
from app.services import service_requests as request_service
from app.services import ratings as rating_service
from app.services import payments as payment_service
from app.services import notifications as notification_service
from app.services import metrics as metrics_service

router = APIRouter(prefix="/collector", tags=["Collector"])

collector_only = require_roles(Role.COLLECTOR)


@router.get("/queue", response_model=List[ServiceRequestResponse])
async def get_queue(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    """Assigned work plus open requests in the collector's municipality"""
    requests = await request_service.list_collector_queue(db, caller)
    return [r.to_dict() for r in requests]


@router.post("/requests/{request_id}/accept", response_model=ServiceRequestResponse)
async def accept_request(
    request_id: str,
    data: Optional[AcceptRequest] = None,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    note = data.note if data else None
    request = await request_service.accept_service_request(db, caller, request_id, note)
    return request.to_dict()


@router.post("/requests/{request_id}/reject", response_model=ServiceRequestResponse)
async def reject_request(
    request_id: str,
    data: RejectRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    request = await request_service.reject_service_request(db, caller, request_id, data.reason)
    return request.to_dict()


@router.post("/requests/{request_id}/start", response_model=ServiceRequestResponse)
async def start_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    request = await request_service.start_service_request(db, caller, request_id)
    return request.to_dict()


@router.post("/requests/{request_id}/complete", response_model=WasteCollectionResponse)
async def complete_request(
    request_id: str,
    data: CompleteRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    collection = await request_service.complete_service_request(
        db,
        caller,
        request_id,
        note=data.note,
        actual_weight=data.actual_weight,
        latitude=data.latitude,
        longitude=data.longitude,
    )
    return collection.to_dict()


@router.get("/collections", response_model=List[WasteCollectionResponse])
async def get_collections(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    collections = await request_service.list_waste_collections(
        db, collector_id=caller.user_id, start_date=start_date, end_date=end_date
    )
    return [c.to_dict() for c in collections]


# ============================================================================
# Dashboard
# ============================================================================

@router.get("/dashboard", response_model=CollectorDashboard)
async def get_dashboard(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    return await metrics_service.collector_dashboard(db, caller.user_id)


@router.get("/performance-data", response_model=CollectorPerformance)
async def get_performance_data(
    period: PeriodType = Query(PeriodType.WEEK),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    return await metrics_service.collector_performance_series(db, caller.user_id, period)


@router.get("/objectives", response_model=CollectorObjectives)
async def get_objectives(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    return await metrics_service.collector_objectives(db, caller.user_id)


@router.get("/recent-feedback", response_model=List[RatingResponse])
async def get_recent_feedback(
    limit: int = Query(5, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    ratings = await rating_service.recent_feedback(db, caller.user_id, limit)
    return [r.to_dict() for r in ratings]


@router.get("/ratings", response_model=List[RatingResponse])
async def get_ratings(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    ratings = await rating_service.list_ratings_for_collector(db, caller.user_id)
    return [r.to_dict() for r in ratings]


@router.get("/payments", response_model=PaymentPage)
async def get_payments(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    filters = PaymentFilter(start_date=start_date, end_date=end_date, page=page, size=size)
    items, total = await payment_service.payment_history(db, caller, filters)
    return {"items": [p.to_dict() for p in items], "total": total, "page": page, "size": size}


@router.get("/alerts", response_model=List[NotificationResponse])
async def get_alerts(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(collector_only)
):
    """Unread ALERT notifications, newest first"""
    items, _ = await notification_service.list_notifications(
        db, caller, is_read=False, notification_type=NotificationType.ALERT, size=50
    )
    return [n.to_dict() for n in items]
