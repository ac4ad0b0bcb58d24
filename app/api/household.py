"""
WasteCollect Server - Household API
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Role, ServiceRequestStatus
from app.schemas import (
    ServiceRequestCreate,
    ServiceRequestFilter,
    ServiceRequestResponse,
    ServiceRequestPage,
    RatingCreate,
    RatingResponse,
    PaymentFilter,
    PaymentPage,
    UserResponse,
    UserUpdate,
)
from app.api.auth import require_roles
from app.services.caller import Caller
from app.services import service_requests as request_service
from app.services import ratings as rating_service
from app.services import payments as payment_service
from app.services import users as user_service

router = APIRouter(prefix="/household", tags=["Household"])

household_only = require_roles(Role.HOUSEHOLD)


@router.get("/requests", response_model=ServiceRequestPage)
async def list_my_requests(
    status_filter: Optional[ServiceRequestStatus] = Query(None, alias="status"),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(household_only)
):
    filters = ServiceRequestFilter(status=status_filter, page=page, size=size)
    items, total = await request_service.list_service_requests(db, caller, filters)
    return {"items": [r.to_dict() for r in items], "total": total, "page": page, "size": size}


@router.post("/requests", response_model=ServiceRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_request(
    data: ServiceRequestCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(household_only)
):
    request = await request_service.create_service_request(db, caller, data)
    return request.to_dict()


@router.post("/requests/{request_id}/cancel", response_model=ServiceRequestResponse)
async def cancel_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(household_only)
):
    request = await request_service.cancel_service_request(db, caller, request_id)
    return request.to_dict()


@router.post("/rate-collector", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
async def rate_collector(
    data: RatingCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(household_only)
):
    rating = await rating_service.rate_collector(
        db, caller, data.service_request_id, data.rating, data.comment
    )
    return rating.to_dict()


@router.get("/payments", response_model=PaymentPage)
async def list_my_payments(
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(household_only)
):
    filters = PaymentFilter(page=page, size=size)
    items, total = await payment_service.payment_history(db, caller, filters)
    return {"items": [p.to_dict() for p in items], "total": total, "page": page, "size": size}


@router.get("/profile", response_model=UserResponse)
async def get_profile(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(household_only)
):
    user = await user_service.get_user(db, caller.user_id)
    return user.to_dict()


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    data: UserUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(household_only)
):
    user = await user_service.update_user(db, caller, caller.user_id, data)
    return user.to_dict()
