"""
WasteCollect Server - Metrics Schemas
Read-only projections returned by the aggregation engine
"""
from pydantic import BaseModel
from typing import Optional, List, Dict
from datetime import datetime


# ============================================================================
# Collector
# ============================================================================

class CollectorDashboard(BaseModel):
    total_requests: int = 0
    pending_requests: int = 0
    completed_today: int = 0
    total_revenue: float = 0.0
    weekly_revenue: float = 0.0
    average_rating: float = 0.0
    total_ratings: int = 0
    distinct_households: int = 0
    completion_rate: float = 0.0


class PerformancePoint(BaseModel):
    label: str
    start: datetime
    end: datetime
    completed_collections: int = 0
    revenue: float = 0.0


class CollectorPerformance(BaseModel):
    period: str
    points: List[PerformancePoint]


class Objective(BaseModel):
    name: str
    target: float
    current: float
    progress_percent: float


class CollectorObjectives(BaseModel):
    month_start: datetime
    objectives: List[Objective]


# ============================================================================
# Municipality
# ============================================================================

class UnderservedArea(BaseModel):
    household_id: str
    household_name: str
    address: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    days_since_last_collection: int
    pending_requests: int
    coverage_score: int


class WasteCollectionData(BaseModel):
    total_collections: int = 0
    total_weight: float = 0.0
    average_weight: float = 0.0
    pending_requests: int = 0
    completed_requests: int = 0
    weight_by_waste_type: Dict[str, float] = {}


class MetricsAnalysis(BaseModel):
    total_households: int = 0
    active_households: int = 0
    total_collectors: int = 0
    active_collectors: int = 0
    average_response_time_hours: float = 0.0
    average_rating: float = 0.0
    total_disputes: int = 0
    open_disputes: int = 0


class PerformanceMetrics(BaseModel):
    total_requests: int = 0
    completed_requests: int = 0
    collection_efficiency: float = 0.0
    average_response_time_hours: float = 0.0
    customer_satisfaction: float = 0.0


class ComparativeData(BaseModel):
    """Ratios are None when the cross-municipality average is zero"""
    municipality_id: str
    current: PerformanceMetrics
    average: PerformanceMetrics
    municipalities_compared: int = 0
    efficiency_ratio: Optional[float] = None
    response_time_ratio: Optional[float] = None
    satisfaction_ratio: Optional[float] = None


class MapPoint(BaseModel):
    kind: str  # COLLECTION, REQUEST or HOUSEHOLD
    id: str
    latitude: float
    longitude: float
    label: Optional[str] = None
    status: Optional[str] = None
    weight: Optional[float] = None


class WasteMappingData(BaseModel):
    municipality_id: str
    points: List[MapPoint]


class DetailedReport(BaseModel):
    municipality_id: Optional[str] = None
    municipality_name: str
    start_date: datetime
    end_date: datetime
    generated_at: datetime
    collection_data: WasteCollectionData
    metrics: MetricsAnalysis
    performance: PerformanceMetrics
    underserved_areas: List[UnderservedArea]


# ============================================================================
# Platform
# ============================================================================

class GlobalStatistics(BaseModel):
    period: str
    start_date: datetime
    end_date: datetime
    total_users: int = 0
    total_households: int = 0
    total_collectors: int = 0
    total_municipalities: int = 0
    total_requests: int = 0
    completed_requests: int = 0
    pending_requests: int = 0
    total_waste_collected: float = 0.0
    total_revenue: float = 0.0
    open_disputes: int = 0


class Activity(BaseModel):
    kind: str  # USER_REGISTERED, REQUEST_COMPLETED, DISPUTE_OPENED, NOTIFICATION
    description: str
    timestamp: datetime
    reference_id: str
