"""
WasteCollect Server - Enumerations
Stored as their string value in the database
"""
import enum


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    COLLECTOR = "COLLECTOR"
    HOUSEHOLD = "HOUSEHOLD"
    MUNICIPAL_MANAGER = "MUNICIPAL_MANAGER"


class HousingType(str, enum.Enum):
    HOUSE = "HOUSE"
    APARTMENT = "APARTMENT"
    VILLA = "VILLA"
    STUDIO = "STUDIO"
    OTHER = "OTHER"


class CollectorStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ON_LEAVE = "ON_LEAVE"
    SUSPENDED = "SUSPENDED"


class WasteType(str, enum.Enum):
    HOUSEHOLD = "HOUSEHOLD"
    ELECTRONIC = "ELECTRONIC"
    ORGANIC = "ORGANIC"
    PAPER = "PAPER"
    PLASTIC = "PLASTIC"
    METAL = "METAL"
    GLASS = "GLASS"
    BULK = "BULK"
    HAZARDOUS = "HAZARDOUS"
    GENERAL = "GENERAL"
    RECYCLABLE = "RECYCLABLE"
    OTHER = "OTHER"


class ServiceRequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, enum.Enum):
    CASH = "CASH"
    MOBILE_MONEY = "MOBILE_MONEY"
    CREDIT_CARD = "CREDIT_CARD"
    BANK_TRANSFER = "BANK_TRANSFER"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class DisputeStatus(str, enum.Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class NotificationType(str, enum.Enum):
    ALERT = "ALERT"                                    # general alerts
    REMINDER = "REMINDER"                              # payment due, schedule
    INFO = "INFO"
    SYSTEM_MESSAGE = "SYSTEM_MESSAGE"                  # account updates
    PAYMENT_CONFIRMATION = "PAYMENT_CONFIRMATION"
    DISPUTE_RESOLUTION = "DISPUTE_RESOLUTION"
    SERVICE_REQUEST_UPDATE = "SERVICE_REQUEST_UPDATE"
    NEW_SERVICE_REQUEST = "NEW_SERVICE_REQUEST"        # to collectors
    COLLECTION_REMINDER = "COLLECTION_REMINDER"        # to households


class PeriodType(str, enum.Enum):
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"


class ReportType(str, enum.Enum):
    MUNICIPALITY = "MUNICIPALITY"
    GLOBAL = "GLOBAL"


class ReportStatus(str, enum.Enum):
    PENDING = "PENDING"
    GENERATING = "GENERATING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
