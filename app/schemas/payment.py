"""
WasteCollect Server - Payment Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from datetime import datetime

from app.models.enums import PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
    service_request_id: str
    amount: float
    payment_method: PaymentMethod
    status: PaymentStatus = PaymentStatus.SUCCESSFUL
    transaction_reference: Optional[str] = Field(None, max_length=50)


class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus


class PaymentFilter(BaseModel):
    household_id: Optional[str] = None
    collector_id: Optional[str] = None
    status: Optional[PaymentStatus] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    page: int = Field(0, ge=0)
    size: int = Field(20, ge=1, le=200)


class PaymentResponse(BaseModel):
    id: str
    amount: float
    payment_method: str
    status: str
    payment_date: Optional[datetime] = None
    transaction_reference: str
    household_id: str
    service_request_id: Optional[str] = None
    collector_id: Optional[str] = None

    class Config:
        from_attributes = True


class PaymentPage(BaseModel):
    items: List[PaymentResponse]
    total: int
    page: int
    size: int


class PaymentStatistics(BaseModel):
    total_payments: int = 0
    total_amount: float = 0.0
    successful_amount: float = 0.0
    average_amount: float = 0.0
    by_status: Dict[str, int] = {}
    by_method: Dict[str, float] = {}
