"""
WasteCollect Server - Collector Ratings
CollectorRating is the only place a rating is stored
"""
import logging
from datetime import datetime
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError, InvalidStateError, AuthorizationError
from app.models import CollectorRating, ServiceRequest, ServiceRequestStatus, Role, NotificationType
from app.services.caller import Caller
from app.services.notifications import notify

logger = logging.getLogger(__name__)


async def rate_collector(
    db: AsyncSession,
    caller: Caller,
    service_request_id: str,
    rating: int,
    comment: Optional[str] = None,
) -> CollectorRating:
    caller.require(Role.HOUSEHOLD)

    if rating is None or not 1 <= rating <= 5:
        raise ValidationError("Rating must be between 1 and 5", field="rating")

    result = await db.execute(select(ServiceRequest).where(ServiceRequest.id == service_request_id))
    request = result.scalar_one_or_none()
    if not request:
        raise NotFoundError("Service request", service_request_id)
    if request.household_id != caller.user_id:
        raise AuthorizationError("Service request belongs to another household")
    if request.status != ServiceRequestStatus.COMPLETED.value or not request.collector_id:
        raise InvalidStateError("Only completed service requests can be rated")

    existing = await db.execute(
        select(CollectorRating.id).where(CollectorRating.service_request_id == service_request_id)
    )
    if existing.scalar_one_or_none():
        raise ValidationError("Service request already rated", field="service_request_id")

    entry = CollectorRating(
        collector_id=request.collector_id,
        household_id=caller.user_id,
        service_request_id=request.id,
        rating=rating,
        comment=comment,
        rating_date=datetime.utcnow(),
    )
    try:
        async with db.begin_nested():
            db.add(entry)
    except IntegrityError:
        # A concurrent rating won the unique constraint
        raise ValidationError("Service request already rated", field="service_request_id")

    await notify(
        db,
        recipient_id=request.collector_id,
        subject="New Rating Received",
        message=f"A household rated your service {rating}/5.",
        notification_type=NotificationType.INFO,
        service_request_id=request.id,
    )
    logger.info(f"Collector {request.collector_id} rated {rating} for request {request.id}")
    return entry


async def list_ratings_for_collector(db: AsyncSession, collector_id: str) -> List[CollectorRating]:
    result = await db.execute(
        select(CollectorRating)
        .where(CollectorRating.collector_id == collector_id)
        .order_by(CollectorRating.rating_date.desc())
    )
    return list(result.scalars().all())


async def recent_feedback(db: AsyncSession, collector_id: str, limit: int = 5) -> List[CollectorRating]:
    """Latest ratings that carry a written comment"""
    result = await db.execute(
        select(CollectorRating)
        .where(
            CollectorRating.collector_id == collector_id,
            CollectorRating.comment.isnot(None),
            CollectorRating.comment != "",
        )
        .order_by(CollectorRating.rating_date.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
