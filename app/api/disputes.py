"""
WasteCollect Server - Disputes API
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Role, DisputeStatus
from app.schemas import DisputeCreate, DisputeResolve, DisputeResponse
from app.api.auth import get_current_caller, require_roles
from app.services.caller import Caller
from app.services import disputes as dispute_service

router = APIRouter(prefix="/disputes", tags=["Disputes"])


@router.post("", response_model=DisputeResponse, status_code=status.HTTP_201_CREATED)
async def create_dispute(
    data: DisputeCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    dispute = await dispute_service.create_dispute(
        db,
        caller,
        title=data.title,
        description=data.description,
        service_request_id=data.service_request_id,
        payment_id=data.payment_id,
    )
    return dispute.to_dict()


@router.get("")
async def list_disputes(
    status_filter: Optional[DisputeStatus] = Query(None, alias="status"),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.ADMIN, Role.MUNICIPAL_MANAGER))
):
    items, total = await dispute_service.list_disputes(db, caller, status_filter, page, size)
    return {"items": [d.to_dict() for d in items], "total": total, "page": page, "size": size}


@router.get("/mine", response_model=List[DisputeResponse])
async def my_disputes(
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    disputes = await dispute_service.disputes_for_user(db, caller)
    return [d.to_dict() for d in disputes]


@router.get("/{dispute_id}", response_model=DisputeResponse)
async def get_dispute(
    dispute_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    dispute = await dispute_service.get_dispute(db, caller, dispute_id)
    return dispute.to_dict()


@router.patch("/{dispute_id}/resolve", response_model=DisputeResponse)
async def resolve_dispute(
    dispute_id: str,
    data: DisputeResolve,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.ADMIN, Role.MUNICIPAL_MANAGER))
):
    dispute = await dispute_service.resolve_dispute(db, caller, dispute_id, data.status, data.note)
    return dispute.to_dict()


@router.patch("/{dispute_id}/read", response_model=DisputeResponse)
async def mark_dispute_read(
    dispute_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    dispute = await dispute_service.mark_dispute_read(db, caller, dispute_id)
    return dispute.to_dict()
