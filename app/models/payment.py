"""
WasteCollect Server - Payment Model
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Float, ForeignKey

from app.database import Base
from .enums import PaymentStatus


class Payment(Base):
    """Household payment for a service request"""
    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    amount = Column(Float, nullable=False)
    payment_method = Column(String(20), nullable=False)
    status = Column(String(20), default=PaymentStatus.PENDING.value, index=True)
    payment_date = Column(DateTime, default=datetime.utcnow, index=True)
    transaction_reference = Column(String(50), unique=True, nullable=False, index=True)

    household_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    service_request_id = Column(String(36), ForeignKey("service_requests.id"), index=True)
    collector_id = Column(String(36), ForeignKey("users.id"), index=True)

    def to_dict(self):
        return {
            "id": self.id,
            "amount": self.amount,
            "payment_method": self.payment_method,
            "status": self.status,
            "payment_date": self.payment_date.isoformat() if self.payment_date else None,
            "transaction_reference": self.transaction_reference,
            "household_id": self.household_id,
            "service_request_id": self.service_request_id,
            "collector_id": self.collector_id,
        }
