"""
WasteCollect Server - Payments API
Recording payments, history, statistics and PDF receipts
"""
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Role, PaymentStatus
from app.schemas import (
    PaymentCreate,
    PaymentStatusUpdate,
    PaymentFilter,
    PaymentResponse,
    PaymentPage,
    PaymentStatistics,
)
from app.api.auth import get_current_caller, require_roles
from app.services.caller import Caller
from app.services import payments as payment_service

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def process_payment(
    data: PaymentCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.HOUSEHOLD))
):
    payment = await payment_service.process_payment(db, caller, data)
    return payment.to_dict()


@router.get("", response_model=PaymentPage)
async def payment_history(
    household_id: Optional[str] = Query(None),
    collector_id: Optional[str] = Query(None),
    status_filter: Optional[PaymentStatus] = Query(None, alias="status"),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    filters = PaymentFilter(
        household_id=household_id,
        collector_id=collector_id,
        status=status_filter,
        start_date=start_date,
        end_date=end_date,
        page=page,
        size=size,
    )
    items, total = await payment_service.payment_history(db, caller, filters)
    return {"items": [p.to_dict() for p in items], "total": total, "page": page, "size": size}


@router.get("/statistics", response_model=PaymentStatistics)
async def payment_statistics(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    return await payment_service.payment_statistics(db, caller, start_date, end_date)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    payment = await payment_service.get_payment(db, caller, payment_id)
    return payment.to_dict()


@router.patch("/{payment_id}/status", response_model=PaymentResponse)
async def update_payment_status(
    payment_id: str,
    data: PaymentStatusUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.ADMIN))
):
    payment = await payment_service.update_payment_status(db, caller, payment_id, data.status)
    return payment.to_dict()


@router.get("/{payment_id}/receipt")
async def download_receipt(
    payment_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    """PDF receipt for a payment"""
    content, filename = await payment_service.generate_receipt(db, caller, payment_id)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
