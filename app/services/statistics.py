"""
WasteCollect Server - Statistics Snapshots
"""
import logging
from datetime import datetime
from typing import Optional, List
from sqlalchemy import select, func, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models import Statistics, PeriodType, WasteCollection, Municipality, Role
from app.services.caller import Caller

logger = logging.getLogger(__name__)


async def snapshot_statistics(
    db: AsyncSession,
    caller: Caller,
    period_type: PeriodType,
    start_date: datetime,
    end_date: datetime,
    municipality_id: Optional[str] = None,
) -> Statistics:
    """Computes the collection totals of the window and stores them"""
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date", field="end_date")

    conditions = [WasteCollection.collection_date >= start_date, WasteCollection.collection_date <= end_date]
    if municipality_id:
        exists = await db.execute(select(Municipality.id).where(Municipality.id == municipality_id))
        if not exists.scalar_one_or_none():
            raise NotFoundError("Municipality", municipality_id)
        conditions.append(WasteCollection.municipality_id == municipality_id)

    count, weight, households, collectors = (await db.execute(
        select(
            func.count(WasteCollection.id),
            func.sum(WasteCollection.actual_weight),
            func.count(distinct(WasteCollection.household_id)),
            func.count(distinct(WasteCollection.collector_id)),
        ).where(*conditions)
    )).one()
    weight = float(weight or 0.0)

    snapshot = Statistics(
        period_type=PeriodType(period_type).value,
        start_date=start_date,
        end_date=end_date,
        total_collections=count or 0,
        total_waste_collected=round(weight, 2),
        average_waste_per_collection=round(weight / count, 2) if count else 0.0,
        active_households=households or 0,
        active_collectors=collectors or 0,
        municipality_id=municipality_id,
    )
    db.add(snapshot)
    await db.flush()

    logger.info(f"Statistics snapshot {snapshot.id} ({snapshot.period_type}) stored")
    return snapshot


async def latest_statistics(db: AsyncSession, municipality_id: Optional[str] = None) -> Optional[Statistics]:
    statement = select(Statistics)
    if municipality_id:
        statement = statement.where(Statistics.municipality_id == municipality_id)
    else:
        statement = statement.where(Statistics.municipality_id.is_(None))
    result = await db.execute(statement.order_by(Statistics.created_at.desc()).limit(1))
    return result.scalar_one_or_none()


async def statistics_by_period(
    db: AsyncSession,
    period_type: PeriodType,
    municipality_id: Optional[str] = None,
) -> List[Statistics]:
    statement = select(Statistics).where(Statistics.period_type == PeriodType(period_type).value)
    if municipality_id:
        statement = statement.where(Statistics.municipality_id == municipality_id)
    result = await db.execute(statement.order_by(Statistics.start_date.desc()))
    return list(result.scalars().all())
