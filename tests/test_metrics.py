from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from app.models import Role, PeriodType, WasteCollection, PaymentMethod
from app.schemas import PaymentCreate
from app.services import metrics
from app.services import payments as payment_service
from app.services import ratings as rating_service
from app.services import service_requests as request_service
from app.services.metrics import NO_COLLECTION_SENTINEL_DAYS, coverage_score, period_start

from tests.conftest import caller_for, new_request, run_to_completion


async def _age_collections(db, household, days):
    collections = (await db.execute(
        select(WasteCollection).where(WasteCollection.household_id == household.id)
    )).scalars().all()
    for c in collections:
        c.collection_date = datetime.utcnow() - timedelta(days=days)
    await db.flush()


# ============================================================================
# Pure helpers
# ============================================================================

def test_period_start():
    now = datetime(2024, 3, 31, 12, 0)
    assert period_start("DAY", now) == datetime(2024, 3, 30, 12, 0)
    assert period_start("WEEK", now) == datetime(2024, 3, 24, 12, 0)
    assert period_start("MONTH", now) == datetime(2024, 2, 29, 12, 0)
    assert period_start("YEAR", now) == datetime(2023, 3, 31, 12, 0)
    assert period_start("FORTNIGHT", now) == period_start("WEEK", now)


def test_coverage_score():
    assert coverage_score(0) == 100
    assert coverage_score(3) == 76
    assert coverage_score(10) == 50


def test_resolve_window_defaults_to_last_thirty_days():
    now = datetime(2024, 5, 1)
    start, end = metrics.resolve_window(None, None, now=now)
    assert end == now
    assert start == datetime(2024, 4, 1)


# ============================================================================
# Underserved areas
# ============================================================================

async def test_household_without_history_is_underserved(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)

    areas = await metrics.identify_underserved_areas(
        db, municipality.id, days_threshold=30, min_pending_requests=3
    )

    assert [a.household_id for a in areas] == [household.id]
    assert areas[0].days_since_last_collection == NO_COLLECTION_SENTINEL_DAYS
    assert areas[0].pending_requests == 0
    assert areas[0].coverage_score == 100


async def test_recently_served_household_is_not_flagged(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    collector = await make_user(Role.COLLECTOR, municipality)
    await run_to_completion(db, household, collector)

    areas = await metrics.identify_underserved_areas(db, municipality.id, 30, 3)
    assert areas == []


async def test_pending_backlog_flags_a_served_household(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    collector = await make_user(Role.COLLECTOR, municipality)
    await run_to_completion(db, household, collector)
    for _ in range(3):
        await request_service.create_service_request(db, caller_for(household), new_request())

    areas = await metrics.identify_underserved_areas(db, municipality.id, 30, 3)
    assert len(areas) == 1
    assert areas[0].pending_requests == 3
    assert areas[0].days_since_last_collection == 0


async def test_most_neglected_first(db, make_user, municipality):
    collector = await make_user(Role.COLLECTOR, municipality)
    never = await make_user(Role.HOUSEHOLD, municipality)
    stale = await make_user(Role.HOUSEHOLD, municipality)
    await run_to_completion(db, stale, collector)
    await _age_collections(db, stale, 45)

    areas = await metrics.identify_underserved_areas(db, municipality.id, 30, 3)
    assert [a.household_id for a in areas] == [never.id, stale.id]
    assert areas[1].days_since_last_collection == 45


async def test_raising_the_day_threshold_never_adds_households(db, make_user, municipality):
    collector = await make_user(Role.COLLECTOR, municipality)
    await make_user(Role.HOUSEHOLD, municipality)
    for days in (5, 20, 60):
        household = await make_user(Role.HOUSEHOLD, municipality)
        await run_to_completion(db, household, collector)
        await _age_collections(db, household, days)

    previous = None
    for threshold in (1, 10, 30, 90, 1000):
        flagged = {a.household_id for a in await metrics.identify_underserved_areas(db, municipality.id, threshold, 99)}
        if previous is not None:
            assert flagged <= previous
        previous = flagged


async def test_lowering_min_pending_only_adds_households(db, make_user, municipality):
    for backlog in range(5):
        household = await make_user(Role.HOUSEHOLD, municipality)
        for _ in range(backlog):
            await request_service.create_service_request(db, caller_for(household), new_request())

    previous = set()
    sizes = []
    for min_pending in (5, 4, 3, 2, 1, 0):
        flagged = {a.household_id for a in await metrics.identify_underserved_areas(db, municipality.id, 1000, min_pending)}
        assert previous <= flagged
        sizes.append(len(flagged))
        previous = flagged
    assert sizes == [0, 1, 2, 3, 4, 5]


async def test_underserved_is_scoped_to_municipality(db, make_user, make_municipality):
    here = await make_municipality("Bafoussam")
    elsewhere = await make_municipality("Bamenda")
    await make_user(Role.HOUSEHOLD, here)
    await make_user(Role.HOUSEHOLD, elsewhere)

    assert len(await metrics.identify_underserved_areas(db, here.id, 30, 3)) == 1
    assert await metrics.global_underserved_count(db, 30, 3) == 2


# ============================================================================
# Municipality indicators
# ============================================================================

async def test_empty_window_has_zero_efficiency(db, municipality):
    now = datetime.utcnow()
    performance = await metrics.performance_metrics(db, now - timedelta(days=30), now, municipality.id)
    assert performance.total_requests == 0
    assert performance.collection_efficiency == 0.0


async def test_comparison_against_zero_average_has_no_ratio(db, municipality):
    now = datetime.utcnow()
    comparison = await metrics.comparative_data(db, municipality.id, now - timedelta(days=30), now)
    assert comparison.municipalities_compared == 0
    assert comparison.efficiency_ratio is None
    assert comparison.satisfaction_ratio is None


@pytest.mark.filterwarnings("error::sqlalchemy.exc.SAWarning")
async def test_comparison_ratio_against_the_peer_average(db, make_user, make_municipality):
    here = await make_municipality("Bafoussam")
    elsewhere = await make_municipality("Bamenda")
    await run_to_completion(db, await make_user(Role.HOUSEHOLD, here), await make_user(Role.COLLECTOR, here))
    household = await make_user(Role.HOUSEHOLD, elsewhere)
    await run_to_completion(db, household, await make_user(Role.COLLECTOR, elsewhere))
    await request_service.create_service_request(db, caller_for(household), new_request())

    now = datetime.utcnow()
    comparison = await metrics.comparative_data(db, here.id, now - timedelta(days=1), now + timedelta(minutes=1))
    assert comparison.municipalities_compared == 2
    assert comparison.current.collection_efficiency == 100.0
    assert comparison.average.collection_efficiency == 75.0
    assert comparison.efficiency_ratio == pytest.approx(100 / 75, rel=1e-3)


async def test_collection_data_and_efficiency(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    collector = await make_user(Role.COLLECTOR, municipality)
    await run_to_completion(db, household, collector, weight=12.5)
    await run_to_completion(db, household, collector, weight=7.5)
    await request_service.create_service_request(db, caller_for(household), new_request())

    start, end = datetime.utcnow() - timedelta(days=1), datetime.utcnow() + timedelta(minutes=1)
    data = await metrics.waste_collection_data(db, municipality.id, start, end)
    assert data.total_collections == 2
    assert data.total_weight == 20.0
    assert data.average_weight == 10.0
    assert data.pending_requests == 1
    assert data.weight_by_waste_type == {"HOUSEHOLD": 20.0}

    performance = await metrics.performance_metrics(db, start, end, municipality.id)
    assert performance.total_requests == 3
    assert performance.completed_requests == 2
    assert performance.collection_efficiency == pytest.approx(66.67)

    comparison = await metrics.comparative_data(db, municipality.id, start, end)
    assert comparison.municipalities_compared == 1
    assert comparison.efficiency_ratio == 1.0


async def test_waste_mapping_includes_located_households(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality, latitude=5.45, longitude=10.05)
    await make_user(Role.HOUSEHOLD, municipality)
    await request_service.create_service_request(db, caller_for(household), new_request())

    now = datetime.utcnow()
    mapping = await metrics.waste_mapping_data(db, municipality.id, now - timedelta(days=1), now)
    kinds = sorted(p.kind for p in mapping.points)
    assert kinds == ["HOUSEHOLD", "REQUEST"]


# ============================================================================
# Collector dashboard
# ============================================================================

async def test_collector_dashboard(db, make_user, municipality):
    household = await make_user(Role.HOUSEHOLD, municipality)
    collector = await make_user(Role.COLLECTOR, municipality)
    done = await run_to_completion(db, household, collector)
    await payment_service.process_payment(db, caller_for(household), PaymentCreate(
        service_request_id=done.id, amount=2000, payment_method=PaymentMethod.MOBILE_MONEY,
    ))
    await rating_service.rate_collector(db, caller_for(household), done.id, 4)
    open_request = await request_service.create_service_request(db, caller_for(household), new_request())
    await request_service.accept_service_request(db, caller_for(collector), open_request.id)

    dashboard = await metrics.collector_dashboard(db, collector.id)
    assert dashboard.total_requests == 2
    assert dashboard.pending_requests == 1
    assert dashboard.completed_today == 1
    assert dashboard.total_revenue == 2000
    assert dashboard.weekly_revenue == 2000
    assert dashboard.average_rating == 4.0
    assert dashboard.distinct_households == 1
    assert dashboard.completion_rate == 50.0


@pytest.mark.parametrize("period,points", [
    (PeriodType.DAY, 7),
    (PeriodType.WEEK, 4),
    (PeriodType.MONTH, 12),
    (PeriodType.YEAR, 3),
])
async def test_performance_series_bucket_counts(db, make_user, municipality, period, points):
    household = await make_user(Role.HOUSEHOLD, municipality)
    collector = await make_user(Role.COLLECTOR, municipality)
    await run_to_completion(db, household, collector)

    series = await metrics.collector_performance_series(db, collector.id, period)
    assert len(series.points) == points
    assert series.points[-1].completed_collections == 1
    assert sum(p.completed_collections for p in series.points) == 1


async def test_objectives_progress_is_capped(db, make_user, municipality):
    collector = await make_user(Role.COLLECTOR, municipality)
    objectives = await metrics.collector_objectives(db, collector.id)
    assert {o.name for o in objectives.objectives} == {"collections", "revenue", "rating"}
    assert all(0 <= o.progress_percent <= 100 for o in objectives.objectives)


async def test_global_statistics_unknown_period_reads_as_week(db, make_user, municipality):
    await make_user(Role.HOUSEHOLD, municipality)
    stats = await metrics.global_statistics(db, "SOMETIME")
    assert stats.end_date - stats.start_date == timedelta(weeks=1)
    assert stats.total_households == 1
    assert stats.total_municipalities == 1
    assert stats.period == "WEEK"
