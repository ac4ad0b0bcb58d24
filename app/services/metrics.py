"""
WasteCollect Server - Aggregation & Metrics
Read-only dashboards and indicators computed from requests, collections,
payments, ratings and disputes over a time window.
"""
import logging
from calendar import monthrange
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Tuple
from sqlalchemy import select, func, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models import (
    User,
    Role,
    CollectorStatus,
    Municipality,
    ServiceRequest,
    ServiceRequestStatus,
    WasteCollection,
    Payment,
    PaymentStatus,
    CollectorRating,
    Dispute,
    DisputeStatus,
    Notification,
    PeriodType,
)
from app.schemas.metrics import (
    CollectorDashboard,
    PerformancePoint,
    CollectorPerformance,
    Objective,
    CollectorObjectives,
    UnderservedArea,
    WasteCollectionData,
    MetricsAnalysis,
    PerformanceMetrics,
    ComparativeData,
    MapPoint,
    WasteMappingData,
    DetailedReport,
    GlobalStatistics,
    Activity,
)

logger = logging.getLogger(__name__)

S = ServiceRequestStatus

# Days reported for a household that has never been collected
NO_COLLECTION_SENTINEL_DAYS = 999


# ============================================================================
# Date helpers
# ============================================================================

def _start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _start_of_week(dt: datetime) -> datetime:
    """Weeks start on Monday"""
    return _start_of_day(dt) - timedelta(days=dt.weekday())


def _start_of_month(dt: datetime) -> datetime:
    return _start_of_day(dt).replace(day=1)


def _add_months(dt: datetime, months: int) -> datetime:
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def period_start(period: str, now: datetime) -> datetime:
    """Start of the look-back window ending at `now`; unknown periods mean one week"""
    period = (period or "").upper()
    if period == PeriodType.DAY.value:
        return now - timedelta(days=1)
    if period == PeriodType.MONTH.value:
        return _add_months(now, -1)
    if period == PeriodType.YEAR.value:
        return _add_months(now, -12)
    return now - timedelta(weeks=1)


def resolve_window(
    start: Optional[datetime],
    end: Optional[datetime],
    now: Optional[datetime] = None,
    default_days: int = 30,
) -> Tuple[datetime, datetime]:
    """Missing bounds default to the last `default_days` days"""
    end = end or now or datetime.utcnow()
    start = start or end - timedelta(days=default_days)
    if start > end:
        raise ValidationError("start_date must not be after end_date", field="start_date")
    return start, end


def _hours_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


async def _scalar(db: AsyncSession, statement, default=0):
    value = (await db.execute(statement)).scalar()
    return default if value is None else value


async def _require_municipality(db: AsyncSession, municipality_id: str) -> Municipality:
    result = await db.execute(select(Municipality).where(Municipality.id == municipality_id))
    municipality = result.scalar_one_or_none()
    if not municipality:
        raise NotFoundError("Municipality", municipality_id)
    return municipality


# ============================================================================
# Collector
# ============================================================================

async def _revenue(db: AsyncSession, collector_id: str, start: Optional[datetime] = None,
                   end: Optional[datetime] = None) -> float:
    conditions = [Payment.collector_id == collector_id, Payment.status == PaymentStatus.SUCCESSFUL.value]
    if start is not None:
        conditions.append(Payment.payment_date >= start)
    if end is not None:
        conditions.append(Payment.payment_date < end)
    return float(await _scalar(db, select(func.sum(Payment.amount)).where(*conditions), 0.0))


async def _completed_collections(db: AsyncSession, collector_id: str, start: datetime, end: datetime) -> int:
    return await _scalar(db, select(func.count(WasteCollection.id)).where(
        WasteCollection.collector_id == collector_id,
        WasteCollection.collection_date >= start,
        WasteCollection.collection_date < end,
    ))


async def _rating_summary(db: AsyncSession, collector_id: str) -> Tuple[float, int]:
    row = (await db.execute(
        select(func.avg(CollectorRating.rating), func.count(CollectorRating.id))
        .where(CollectorRating.collector_id == collector_id)
    )).one()
    return round(float(row[0] or 0.0), 2), row[1] or 0


async def collector_dashboard(db: AsyncSession, collector_id: str, now: Optional[datetime] = None) -> CollectorDashboard:
    now = now or datetime.utcnow()
    today = _start_of_day(now)

    total = await _scalar(db, select(func.count(ServiceRequest.id)).where(
        ServiceRequest.collector_id == collector_id
    ))
    pending = await _scalar(db, select(func.count(ServiceRequest.id)).where(
        ServiceRequest.collector_id == collector_id,
        ServiceRequest.status == S.ACCEPTED.value,
    ))
    completed = await _scalar(db, select(func.count(ServiceRequest.id)).where(
        ServiceRequest.collector_id == collector_id,
        ServiceRequest.status == S.COMPLETED.value,
    ))
    completed_today = await _completed_collections(db, collector_id, today, today + timedelta(days=1))
    households = await _scalar(db, select(func.count(distinct(ServiceRequest.household_id))).where(
        ServiceRequest.collector_id == collector_id
    ))
    average_rating, total_ratings = await _rating_summary(db, collector_id)

    return CollectorDashboard(
        total_requests=total,
        pending_requests=pending,
        completed_today=completed_today,
        total_revenue=await _revenue(db, collector_id),
        weekly_revenue=await _revenue(db, collector_id, start=_start_of_week(now)),
        average_rating=average_rating,
        total_ratings=total_ratings,
        distinct_households=households,
        completion_rate=round(completed / total * 100, 2) if total else 0.0,
    )


def _performance_buckets(period: PeriodType, now: datetime) -> List[Tuple[str, datetime, datetime]]:
    """(label, start, end) buckets, oldest first, the last one containing `now`"""
    buckets = []
    if period == PeriodType.DAY:
        today = _start_of_day(now)
        for i in range(6, -1, -1):
            start = today - timedelta(days=i)
            buckets.append((start.strftime("%Y-%m-%d"), start, start + timedelta(days=1)))
    elif period == PeriodType.WEEK:
        week = _start_of_week(now)
        for i in range(3, -1, -1):
            start = week - timedelta(weeks=i)
            buckets.append((f"Week of {start.strftime('%Y-%m-%d')}", start, start + timedelta(weeks=1)))
    elif period == PeriodType.MONTH:
        month = _start_of_month(now)
        for i in range(11, -1, -1):
            start = _add_months(month, -i)
            buckets.append((start.strftime("%Y-%m"), start, _add_months(start, 1)))
    else:
        year = _start_of_month(now).replace(month=1)
        for i in range(2, -1, -1):
            start = year.replace(year=year.year - i)
            buckets.append((str(start.year), start, start.replace(year=start.year + 1)))
    return buckets


async def collector_performance_series(
    db: AsyncSession,
    collector_id: str,
    period: PeriodType = PeriodType.WEEK,
    now: Optional[datetime] = None,
) -> CollectorPerformance:
    now = now or datetime.utcnow()
    points = []
    for label, start, end in _performance_buckets(PeriodType(period), now):
        points.append(PerformancePoint(
            label=label,
            start=start,
            end=end,
            completed_collections=await _completed_collections(db, collector_id, start, end),
            revenue=await _revenue(db, collector_id, start, end),
        ))
    return CollectorPerformance(period=PeriodType(period).value, points=points)


def _objective(name: str, target: float, current: float) -> Objective:
    progress = min(current / target * 100, 100.0) if target else 0.0
    return Objective(name=name, target=target, current=current, progress_percent=round(progress, 2))


async def collector_objectives(db: AsyncSession, collector_id: str, now: Optional[datetime] = None) -> CollectorObjectives:
    now = now or datetime.utcnow()
    month = _start_of_month(now)
    next_month = _add_months(month, 1)

    collections = await _completed_collections(db, collector_id, month, next_month)
    revenue = await _revenue(db, collector_id, month, next_month)
    average_rating, _ = await _rating_summary(db, collector_id)

    return CollectorObjectives(
        month_start=month,
        objectives=[
            _objective("collections", settings.COLLECTOR_MONTHLY_TARGET_COLLECTIONS, collections),
            _objective("revenue", settings.COLLECTOR_MONTHLY_TARGET_REVENUE, revenue),
            _objective("rating", settings.COLLECTOR_TARGET_RATING, average_rating),
        ],
    )


# ============================================================================
# Underserved areas
# ============================================================================

def coverage_score(pending_requests: int) -> int:
    return int((1 - pending_requests / (pending_requests + 10)) * 100)


async def identify_underserved_areas(
    db: AsyncSession,
    municipality_id: Optional[str] = None,
    days_threshold: Optional[int] = None,
    min_pending_requests: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[UnderservedArea]:
    """
    Households whose last collection is older than `days_threshold` days, or
    that have at least `min_pending_requests` open requests. Households never
    collected count as NO_COLLECTION_SENTINEL_DAYS. Most neglected first.
    A None municipality covers every household on the platform.
    """
    now = now or datetime.utcnow()
    if days_threshold is None:
        days_threshold = settings.UNDERSERVED_DAYS_THRESHOLD
    if min_pending_requests is None:
        min_pending_requests = settings.UNDERSERVED_MIN_PENDING_REQUESTS

    household_filter = [User.role == Role.HOUSEHOLD.value]
    if municipality_id:
        household_filter.append(User.municipality_id == municipality_id)
    households = (await db.execute(select(User).where(*household_filter))).scalars().all()
    if not households:
        return []
    household_ids = [h.id for h in households]

    last_collections = dict((await db.execute(
        select(WasteCollection.household_id, func.max(WasteCollection.collection_date))
        .where(WasteCollection.household_id.in_(household_ids))
        .group_by(WasteCollection.household_id)
    )).all())
    pending_counts = dict((await db.execute(
        select(ServiceRequest.household_id, func.count(ServiceRequest.id))
        .where(
            ServiceRequest.household_id.in_(household_ids),
            ServiceRequest.status.in_([S.PENDING.value, S.IN_PROGRESS.value]),
        )
        .group_by(ServiceRequest.household_id)
    )).all())

    areas = []
    for household in households:
        last = last_collections.get(household.id)
        days = (now - last).days if last else NO_COLLECTION_SENTINEL_DAYS
        pending = pending_counts.get(household.id, 0)
        if days > days_threshold or pending >= min_pending_requests:
            areas.append(UnderservedArea(
                household_id=household.id,
                household_name=household.full_name,
                address=household.address,
                latitude=household.latitude,
                longitude=household.longitude,
                days_since_last_collection=days,
                pending_requests=pending,
                coverage_score=coverage_score(pending),
            ))

    areas.sort(key=lambda a: (a.days_since_last_collection, a.pending_requests), reverse=True)
    return areas


async def global_underserved_count(
    db: AsyncSession,
    days_threshold: Optional[int] = None,
    min_pending_requests: Optional[int] = None,
    now: Optional[datetime] = None,
) -> int:
    areas = await identify_underserved_areas(db, None, days_threshold, min_pending_requests, now)
    return len(areas)


# ============================================================================
# Municipality indicators
# ============================================================================

def _request_scope(start: datetime, end: datetime, municipality_id: Optional[str]) -> list:
    conditions = [ServiceRequest.created_at >= start, ServiceRequest.created_at <= end]
    if municipality_id:
        conditions.append(ServiceRequest.municipality_id == municipality_id)
    return conditions


async def _average_response_hours(db: AsyncSession, start: datetime, end: datetime,
                                  municipality_id: Optional[str]) -> float:
    rows = (await db.execute(
        select(ServiceRequest.created_at, ServiceRequest.updated_at).where(
            ServiceRequest.status == S.COMPLETED.value,
            *_request_scope(start, end, municipality_id),
        )
    )).all()
    durations = [_hours_between(created, updated) for created, updated in rows if created and updated]
    return round(sum(durations) / len(durations), 2) if durations else 0.0


async def _average_rating(db: AsyncSession, start: datetime, end: datetime,
                          municipality_id: Optional[str]) -> float:
    statement = select(func.avg(CollectorRating.rating)).where(
        CollectorRating.rating_date >= start,
        CollectorRating.rating_date <= end,
    )
    if municipality_id:
        statement = statement.select_from(CollectorRating).join(
            ServiceRequest, ServiceRequest.id == CollectorRating.service_request_id
        ).where(ServiceRequest.municipality_id == municipality_id)
    return round(float(await _scalar(db, statement, 0.0)), 2)


async def performance_metrics(
    db: AsyncSession,
    start: datetime,
    end: datetime,
    municipality_id: Optional[str] = None,
) -> PerformanceMetrics:
    scope = _request_scope(start, end, municipality_id)
    total = await _scalar(db, select(func.count(ServiceRequest.id)).where(*scope))
    completed = await _scalar(db, select(func.count(ServiceRequest.id)).where(
        ServiceRequest.status == S.COMPLETED.value, *scope
    ))
    return PerformanceMetrics(
        total_requests=total,
        completed_requests=completed,
        collection_efficiency=round(completed / total * 100, 2) if total else 0.0,
        average_response_time_hours=await _average_response_hours(db, start, end, municipality_id),
        customer_satisfaction=await _average_rating(db, start, end, municipality_id),
    )


async def waste_collection_data(
    db: AsyncSession,
    municipality_id: str,
    start: datetime,
    end: datetime,
) -> WasteCollectionData:
    await _require_municipality(db, municipality_id)
    in_window = [
        WasteCollection.municipality_id == municipality_id,
        WasteCollection.collection_date >= start,
        WasteCollection.collection_date <= end,
    ]
    count, total_weight = (await db.execute(
        select(func.count(WasteCollection.id), func.sum(WasteCollection.actual_weight)).where(*in_window)
    )).one()
    total_weight = float(total_weight or 0.0)

    scope = _request_scope(start, end, municipality_id)
    pending = await _scalar(db, select(func.count(ServiceRequest.id)).where(
        ServiceRequest.status == S.PENDING.value, *scope
    ))
    completed = await _scalar(db, select(func.count(ServiceRequest.id)).where(
        ServiceRequest.status == S.COMPLETED.value, *scope
    ))

    by_type = (await db.execute(
        select(ServiceRequest.waste_type, func.sum(WasteCollection.actual_weight))
        .select_from(WasteCollection)
        .join(ServiceRequest, ServiceRequest.id == WasteCollection.service_request_id)
        .where(*in_window)
        .group_by(ServiceRequest.waste_type)
    )).all()

    return WasteCollectionData(
        total_collections=count or 0,
        total_weight=round(total_weight, 2),
        average_weight=round(total_weight / count, 2) if count else 0.0,
        pending_requests=pending,
        completed_requests=completed,
        weight_by_waste_type={waste_type: round(float(weight or 0.0), 2) for waste_type, weight in by_type},
    )


async def metrics_analysis(
    db: AsyncSession,
    municipality_id: str,
    start: datetime,
    end: datetime,
) -> MetricsAnalysis:
    await _require_municipality(db, municipality_id)
    households = [User.role == Role.HOUSEHOLD.value, User.municipality_id == municipality_id]
    collectors = [User.role == Role.COLLECTOR.value, User.municipality_id == municipality_id]
    disputes = (
        select(func.count(Dispute.id))
        .select_from(Dispute)
        .join(User, User.id == Dispute.user_id)
        .where(
            User.municipality_id == municipality_id,
            Dispute.created_at >= start,
            Dispute.created_at <= end,
        )
    )

    return MetricsAnalysis(
        total_households=await _scalar(db, select(func.count(User.id)).where(*households)),
        active_households=await _scalar(db, select(func.count(User.id)).where(
            *households, User.is_active == True, User.enabled == True
        )),
        total_collectors=await _scalar(db, select(func.count(User.id)).where(*collectors)),
        active_collectors=await _scalar(db, select(func.count(User.id)).where(
            *collectors, User.collector_status == CollectorStatus.ACTIVE.value
        )),
        average_response_time_hours=await _average_response_hours(db, start, end, municipality_id),
        average_rating=await _average_rating(db, start, end, municipality_id),
        total_disputes=await _scalar(db, disputes),
        open_disputes=await _scalar(db, disputes.where(Dispute.status == DisputeStatus.OPEN.value)),
    )


def _ratio(current: float, average: float) -> Optional[float]:
    if not average:
        return None
    return round(current / average, 4)


async def comparative_data(
    db: AsyncSession,
    municipality_id: str,
    start: datetime,
    end: datetime,
) -> ComparativeData:
    """
    The municipality's indicators against the mean over every municipality
    with requests in the window. A zero mean yields a None ratio.
    """
    await _require_municipality(db, municipality_id)
    current = await performance_metrics(db, start, end, municipality_id)

    peer_ids = (await db.execute(
        select(ServiceRequest.municipality_id).where(
            ServiceRequest.municipality_id.isnot(None),
            ServiceRequest.created_at >= start,
            ServiceRequest.created_at <= end,
        ).distinct()
    )).scalars().all()
    peers = [await performance_metrics(db, start, end, peer_id) for peer_id in peer_ids]

    def mean(values: List[float]) -> float:
        return round(sum(values) / len(values), 4) if values else 0.0

    average = PerformanceMetrics(
        total_requests=int(mean([p.total_requests for p in peers])),
        completed_requests=int(mean([p.completed_requests for p in peers])),
        collection_efficiency=mean([p.collection_efficiency for p in peers]),
        average_response_time_hours=mean([p.average_response_time_hours for p in peers]),
        customer_satisfaction=mean([p.customer_satisfaction for p in peers]),
    )

    return ComparativeData(
        municipality_id=municipality_id,
        current=current,
        average=average,
        municipalities_compared=len(peers),
        efficiency_ratio=_ratio(current.collection_efficiency, average.collection_efficiency),
        response_time_ratio=_ratio(current.average_response_time_hours, average.average_response_time_hours),
        satisfaction_ratio=_ratio(current.customer_satisfaction, average.customer_satisfaction),
    )


async def waste_mapping_data(
    db: AsyncSession,
    municipality_id: str,
    start: datetime,
    end: datetime,
) -> WasteMappingData:
    """Geo points for collections in the window, open requests and households"""
    await _require_municipality(db, municipality_id)
    points: List[MapPoint] = []

    collections = (await db.execute(
        select(WasteCollection).where(
            WasteCollection.municipality_id == municipality_id,
            WasteCollection.collection_date >= start,
            WasteCollection.collection_date <= end,
            WasteCollection.latitude.isnot(None),
            WasteCollection.longitude.isnot(None),
        )
    )).scalars().all()
    for c in collections:
        points.append(MapPoint(
            kind="COLLECTION", id=c.id, latitude=c.latitude, longitude=c.longitude,
            label=c.address, status=c.status, weight=c.actual_weight,
        ))

    households = (await db.execute(
        select(User).where(
            User.role == Role.HOUSEHOLD.value,
            User.municipality_id == municipality_id,
            User.latitude.isnot(None),
            User.longitude.isnot(None),
        )
    )).scalars().all()
    located: Dict[str, User] = {h.id: h for h in households}

    open_requests = (await db.execute(
        select(ServiceRequest).where(
            ServiceRequest.municipality_id == municipality_id,
            ServiceRequest.status.in_([S.PENDING.value, S.ACCEPTED.value, S.IN_PROGRESS.value]),
        )
    )).scalars().all()
    for r in open_requests:
        household = located.get(r.household_id)
        if household is None:
            continue
        points.append(MapPoint(
            kind="REQUEST", id=r.id, latitude=household.latitude, longitude=household.longitude,
            label=r.address, status=r.status,
        ))

    for h in households:
        points.append(MapPoint(
            kind="HOUSEHOLD", id=h.id, latitude=h.latitude, longitude=h.longitude, label=h.full_name,
        ))

    return WasteMappingData(municipality_id=municipality_id, points=points)


async def detailed_report(
    db: AsyncSession,
    municipality_id: Optional[str],
    start: datetime,
    end: datetime,
    days_threshold: Optional[int] = None,
    min_pending_requests: Optional[int] = None,
    now: Optional[datetime] = None,
) -> DetailedReport:
    """Everything a municipality report prints; a None municipality covers the whole platform"""
    now = now or datetime.utcnow()
    if municipality_id:
        municipality = await _require_municipality(db, municipality_id)
        collection_data = await waste_collection_data(db, municipality_id, start, end)
        metrics = await metrics_analysis(db, municipality_id, start, end)
        name = municipality.name
    else:
        collection_data = await _global_collection_data(db, start, end)
        metrics = MetricsAnalysis(
            average_response_time_hours=await _average_response_hours(db, start, end, None),
            average_rating=await _average_rating(db, start, end, None),
        )
        name = "All municipalities"

    return DetailedReport(
        municipality_id=municipality_id,
        municipality_name=name,
        start_date=start,
        end_date=end,
        generated_at=now,
        collection_data=collection_data,
        metrics=metrics,
        performance=await performance_metrics(db, start, end, municipality_id),
        underserved_areas=await identify_underserved_areas(
            db, municipality_id, days_threshold, min_pending_requests, now
        ),
    )


async def _global_collection_data(db: AsyncSession, start: datetime, end: datetime) -> WasteCollectionData:
    count, total_weight = (await db.execute(
        select(func.count(WasteCollection.id), func.sum(WasteCollection.actual_weight)).where(
            WasteCollection.collection_date >= start,
            WasteCollection.collection_date <= end,
        )
    )).one()
    total_weight = float(total_weight or 0.0)
    scope = _request_scope(start, end, None)
    return WasteCollectionData(
        total_collections=count or 0,
        total_weight=round(total_weight, 2),
        average_weight=round(total_weight / count, 2) if count else 0.0,
        pending_requests=await _scalar(db, select(func.count(ServiceRequest.id)).where(
            ServiceRequest.status == S.PENDING.value, *scope
        )),
        completed_requests=await _scalar(db, select(func.count(ServiceRequest.id)).where(
            ServiceRequest.status == S.COMPLETED.value, *scope
        )),
    )


# ============================================================================
# Platform
# ============================================================================

async def global_statistics(db: AsyncSession, period: str = "WEEK", now: Optional[datetime] = None) -> GlobalStatistics:
    now = now or datetime.utcnow()
    label = (period or "").upper()
    if label not in {p.value for p in PeriodType}:
        label = PeriodType.WEEK.value
    start = period_start(label, now)
    scope = _request_scope(start, now, None)

    def users_with(role: Role):
        return select(func.count(User.id)).where(User.role == role.value)

    return GlobalStatistics(
        period=label,
        start_date=start,
        end_date=now,
        total_users=await _scalar(db, select(func.count(User.id))),
        total_households=await _scalar(db, users_with(Role.HOUSEHOLD)),
        total_collectors=await _scalar(db, users_with(Role.COLLECTOR)),
        total_municipalities=await _scalar(db, select(func.count(Municipality.id))),
        total_requests=await _scalar(db, select(func.count(ServiceRequest.id)).where(*scope)),
        completed_requests=await _scalar(db, select(func.count(ServiceRequest.id)).where(
            ServiceRequest.status == S.COMPLETED.value, *scope
        )),
        pending_requests=await _scalar(db, select(func.count(ServiceRequest.id)).where(
            ServiceRequest.status == S.PENDING.value, *scope
        )),
        total_waste_collected=round(float(await _scalar(db, select(func.sum(WasteCollection.actual_weight)).where(
            WasteCollection.collection_date >= start, WasteCollection.collection_date <= now
        ), 0.0)), 2),
        total_revenue=round(float(await _scalar(db, select(func.sum(Payment.amount)).where(
            Payment.status == PaymentStatus.SUCCESSFUL.value,
            Payment.payment_date >= start,
            Payment.payment_date <= now,
        ), 0.0)), 2),
        open_disputes=await _scalar(db, select(func.count(Dispute.id)).where(
            Dispute.status == DisputeStatus.OPEN.value
        )),
    )


async def recent_activities(db: AsyncSession, limit: int = 10) -> List[Activity]:
    """Newest users, completed requests, open disputes and notifications, merged by time"""
    activities: List[Activity] = []

    users = (await db.execute(select(User).order_by(User.created_at.desc()).limit(5))).scalars().all()
    for u in users:
        activities.append(Activity(
            kind="USER_REGISTERED",
            description=f"{u.full_name} joined the platform as {u.role}",
            timestamp=u.created_at,
            reference_id=u.id,
        ))

    completed = (await db.execute(
        select(ServiceRequest)
        .where(ServiceRequest.status == S.COMPLETED.value)
        .order_by(ServiceRequest.updated_at.desc())
        .limit(5)
    )).scalars().all()
    for r in completed:
        collector = r.collector.full_name if r.collector else "unassigned collector"
        activities.append(Activity(
            kind="REQUEST_COMPLETED",
            description=f"Collection {r.id} completed by {collector}",
            timestamp=r.updated_at,
            reference_id=r.id,
        ))

    disputes = (await db.execute(
        select(Dispute)
        .where(Dispute.status == DisputeStatus.OPEN.value)
        .order_by(Dispute.created_at.desc())
        .limit(5)
    )).scalars().all()
    for d in disputes:
        activities.append(Activity(
            kind="DISPUTE_OPENED",
            description=f"New dispute: {d.title}",
            timestamp=d.created_at,
            reference_id=d.id,
        ))

    notifications = (await db.execute(
        select(Notification).order_by(Notification.created_at.desc()).limit(5)
    )).scalars().all()
    for n in notifications:
        activities.append(Activity(
            kind="NOTIFICATION",
            description=n.subject,
            timestamp=n.created_at,
            reference_id=n.id,
        ))

    activities.sort(key=lambda a: a.timestamp, reverse=True)
    return activities[:limit]
