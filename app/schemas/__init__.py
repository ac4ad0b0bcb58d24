from .auth import LoginRequest, LoginResponse, HouseholdRegisterRequest
from .user import UserCreate, UserUpdate, UserResponse, UserPage
from .municipality import (
    ManagerCreate,
    MunicipalityCreate,
    MunicipalityUpdate,
    MunicipalityResponse
)
from .service_request import (
    ServiceRequestCreate,
    ServiceRequestUpdate,
    ServiceRequestFilter,
    ServiceRequestResponse,
    ServiceRequestPage,
    AcceptRequest,
    RejectRequest,
    CompleteRequest,
    AssignCollectorRequest,
    WasteCollectionResponse
)
from .rating import RatingCreate, RatingResponse
from .dispute import DisputeCreate, DisputeResolve, DisputeResponse
from .notification import (
    Audience,
    NotificationResponse,
    NotificationPage,
    BulkNotificationRequest,
    DeliveryEntry,
    DispatchResult,
    UnreadCountResponse
)
from .payment import (
    PaymentCreate,
    PaymentStatusUpdate,
    PaymentFilter,
    PaymentResponse,
    PaymentPage,
    PaymentStatistics
)
from .report import ReportConfig, ReportResponse
from .statistics import StatisticsSnapshotRequest, StatisticsResponse

__all__ = [
    "LoginRequest",
    "LoginResponse",
    "HouseholdRegisterRequest",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserPage",
    "ManagerCreate",
    "MunicipalityCreate",
    "MunicipalityUpdate",
    "MunicipalityResponse",
    "ServiceRequestCreate",
    "ServiceRequestUpdate",
    "ServiceRequestFilter",
    "ServiceRequestResponse",
    "ServiceRequestPage",
    "AcceptRequest",
    "RejectRequest",
    "CompleteRequest",
    "AssignCollectorRequest",
    "WasteCollectionResponse",
    "RatingCreate",
    "RatingResponse",
    "DisputeCreate",
    "DisputeResolve",
    "DisputeResponse",
    "Audience",
    "NotificationResponse",
    "NotificationPage",
    "BulkNotificationRequest",
    "DeliveryEntry",
    "DispatchResult",
    "UnreadCountResponse",
    "PaymentCreate",
    "PaymentStatusUpdate",
    "PaymentFilter",
    "PaymentResponse",
    "PaymentPage",
    "PaymentStatistics",
    "ReportConfig",
    "ReportResponse",
    "StatisticsSnapshotRequest",
    "StatisticsResponse"
]
