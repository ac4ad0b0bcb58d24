from .auth import router as auth_router
from .service_requests import router as service_requests_router
from .collector import router as collector_router
from .household import router as household_router
from .municipalities import router as municipalities_router
from .admin import router as admin_router
from .notifications import router as notifications_router
from .payments import router as payments_router
from .disputes import router as disputes_router
from .statistics import router as statistics_router

__all__ = [
    "auth_router",
    "service_requests_router",
    "collector_router",
    "household_router",
    "municipalities_router",
    "admin_router",
    "notifications_router",
    "payments_router",
    "disputes_router",
    "statistics_router"
]
