"""
WasteCollect Server - Service Requests API
Listing, creation, edition and the administrative transitions
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models import Role, ServiceRequestStatus
from app.schemas import (
    ServiceRequestCreate,
    ServiceRequestUpdate,
    ServiceRequestFilter,
    ServiceRequestResponse,
    ServiceRequestPage,
    AssignCollectorRequest,
    WasteCollectionResponse,
)
from app.api.auth import get_current_caller, require_roles
from app.services.caller import Caller
from app.services import service_requests as request_service
from app.services import users as user_service

router = APIRouter(prefix="/service-requests", tags=["Service Requests"])


@router.get("", response_model=ServiceRequestPage)
async def list_service_requests(
    status_filter: Optional[ServiceRequestStatus] = Query(None, alias="status"),
    household_id: Optional[str] = Query(None),
    collector_id: Optional[str] = Query(None),
    municipality_id: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    filters = ServiceRequestFilter(
        status=status_filter,
        household_id=household_id,
        collector_id=collector_id,
        municipality_id=municipality_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        size=size,
    )
    items, total = await request_service.list_service_requests(db, caller, filters)
    return {"items": [r.to_dict() for r in items], "total": total, "page": page, "size": size}


@router.get("/collections", response_model=List[WasteCollectionResponse])
async def list_collections(
    municipality_id: Optional[str] = Query(None),
    collector_id: Optional[str] = Query(None),
    household_id: Optional[str] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.ADMIN, Role.MUNICIPAL_MANAGER))
):
    """Collection records; managers are pinned to their municipality"""
    if caller.role == Role.MUNICIPAL_MANAGER:
        manager = await user_service.get_user(db, caller.user_id)
        municipality_id = manager.municipality_id

    collections = await request_service.list_waste_collections(
        db,
        municipality_id=municipality_id,
        collector_id=collector_id,
        household_id=household_id,
        start_date=start_date,
        end_date=end_date,
    )
    return [c.to_dict() for c in collections]


@router.post("", response_model=ServiceRequestResponse, status_code=status.HTTP_201_CREATED)
async def create_service_request(
    data: ServiceRequestCreate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    request = await request_service.create_service_request(db, caller, data)
    return request.to_dict()


@router.get("/{request_id}", response_model=ServiceRequestResponse)
async def get_service_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    request = await request_service.get_service_request(db, caller, request_id)
    return request.to_dict()


@router.put("/{request_id}", response_model=ServiceRequestResponse)
async def update_service_request(
    request_id: str,
    data: ServiceRequestUpdate,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    request = await request_service.update_service_request(db, caller, request_id, data)
    return request.to_dict()


@router.delete("/{request_id}")
async def delete_service_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.ADMIN))
):
    await request_service.delete_service_request(db, caller, request_id)
    return {"message": "Service request deleted successfully"}


@router.post("/{request_id}/assign", response_model=ServiceRequestResponse)
async def assign_collector(
    request_id: str,
    data: AssignCollectorRequest,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(require_roles(Role.ADMIN, Role.MUNICIPAL_MANAGER))
):
    request = await request_service.assign_collector(db, caller, request_id, data.collector_id)
    return request.to_dict()


@router.post("/{request_id}/cancel", response_model=ServiceRequestResponse)
async def cancel_service_request(
    request_id: str,
    db: AsyncSession = Depends(get_db),
    caller: Caller = Depends(get_current_caller)
):
    request = await request_service.cancel_service_request(db, caller, request_id)
    return request.to_dict()
