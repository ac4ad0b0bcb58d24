from .enums import (
    Role,
    HousingType,
    CollectorStatus,
    WasteType,
    ServiceRequestStatus,
    PaymentMethod,
    PaymentStatus,
    DisputeStatus,
    NotificationType,
    PeriodType,
    ReportType,
    ReportStatus,
)
from .municipality import Municipality
from .user import User, HouseholdProfile, CollectorProfile, ManagerProfile, AdminProfile
from .service_request import ServiceRequest
from .waste_collection import WasteCollection
from .rating import CollectorRating
from .payment import Payment
from .dispute import Dispute
from .notification import Notification
from .statistics import Statistics
from .report import Report

__all__ = [
    "Role",
    "HousingType",
    "CollectorStatus",
    "WasteType",
    "ServiceRequestStatus",
    "PaymentMethod",
    "PaymentStatus",
    "DisputeStatus",
    "NotificationType",
    "PeriodType",
    "ReportType",
    "ReportStatus",
    "Municipality",
    "User",
    "HouseholdProfile",
    "CollectorProfile",
    "ManagerProfile",
    "AdminProfile",
    "ServiceRequest",
    "WasteCollection",
    "CollectorRating",
    "Payment",
    "Dispute",
    "Notification",
    "Statistics",
    "Report",
]
