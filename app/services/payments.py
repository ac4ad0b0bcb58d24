"""
WasteCollect Server - Payments
"""
import logging
from datetime import datetime
from typing import Optional, List, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError, AuthorizationError
from app.core.security import generate_transaction_reference
from app.models import (
    Payment,
    PaymentStatus,
    ServiceRequest,
    User,
    Role,
    NotificationType,
)
from app.schemas.payment import PaymentCreate, PaymentFilter, PaymentStatistics
from app.services.caller import Caller
from app.services.notifications import notify
from app.utils.report_generator import generate_receipt_pdf

logger = logging.getLogger(__name__)


async def _reference_taken(db: AsyncSession, reference: str) -> bool:
    result = await db.execute(select(Payment.id).where(Payment.transaction_reference == reference))
    return result.scalar_one_or_none() is not None


async def process_payment(db: AsyncSession, caller: Caller, data: PaymentCreate) -> Payment:
    """Records a household payment for one of its own service requests"""
    caller.require(Role.HOUSEHOLD)

    if data.amount is None or data.amount <= 0:
        raise ValidationError("Amount must be greater than zero", field="amount")

    result = await db.execute(select(ServiceRequest).where(ServiceRequest.id == data.service_request_id))
    request = result.scalar_one_or_none()
    if not request:
        raise NotFoundError("Service request", data.service_request_id)
    if request.household_id != caller.user_id:
        raise AuthorizationError("Service request belongs to another household")

    reference = data.transaction_reference
    if reference:
        if await _reference_taken(db, reference):
            raise ValidationError("Transaction reference already used", field="transaction_reference")
    else:
        reference = generate_transaction_reference()
        while await _reference_taken(db, reference):
            reference = generate_transaction_reference()

    payment = Payment(
        amount=data.amount,
        payment_method=data.payment_method.value,
        status=data.status.value,
        payment_date=datetime.utcnow(),
        transaction_reference=reference,
        household_id=caller.user_id,
        service_request_id=request.id,
        collector_id=request.collector_id,
    )
    db.add(payment)
    await db.flush()

    if payment.status == PaymentStatus.SUCCESSFUL.value:
        await notify(
            db,
            recipient_id=caller.user_id,
            subject="Payment Confirmed",
            message=f"Your payment of {payment.amount:,.2f} was received (ref. {reference}).",
            notification_type=NotificationType.PAYMENT_CONFIRMATION,
            service_request_id=request.id,
            payment_id=payment.id,
        )
        if payment.collector_id:
            await notify(
                db,
                recipient_id=payment.collector_id,
                subject="Payment Received",
                message=f"A payment of {payment.amount:,.2f} was made for a request you handled.",
                notification_type=NotificationType.PAYMENT_CONFIRMATION,
                service_request_id=request.id,
                payment_id=payment.id,
            )

    logger.info(f"Payment {reference} ({payment.status}) recorded for request {request.id}")
    return payment


async def get_payment(db: AsyncSession, caller: Caller, payment_id: str) -> Payment:
    result = await db.execute(select(Payment).where(Payment.id == payment_id))
    payment = result.scalar_one_or_none()
    if not payment:
        raise NotFoundError("Payment", payment_id)
    if caller.role == Role.HOUSEHOLD and payment.household_id != caller.user_id:
        raise AuthorizationError("Payment belongs to another household")
    if caller.role == Role.COLLECTOR and payment.collector_id != caller.user_id:
        raise AuthorizationError("Payment belongs to another collector")
    return payment


async def payment_history(
    db: AsyncSession,
    caller: Caller,
    filters: PaymentFilter,
) -> Tuple[List[Payment], int]:
    """Households and collectors are always scoped to their own payments"""
    conditions = []
    if caller.role == Role.HOUSEHOLD:
        conditions.append(Payment.household_id == caller.user_id)
    elif filters.household_id:
        conditions.append(Payment.household_id == filters.household_id)

    if caller.role == Role.COLLECTOR:
        conditions.append(Payment.collector_id == caller.user_id)
    elif filters.collector_id:
        conditions.append(Payment.collector_id == filters.collector_id)

    if filters.status:
        conditions.append(Payment.status == filters.status.value)
    if filters.start_date:
        conditions.append(Payment.payment_date >= filters.start_date)
    if filters.end_date:
        conditions.append(Payment.payment_date <= filters.end_date)

    total = (await db.execute(select(func.count(Payment.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(Payment)
        .where(*conditions)
        .order_by(Payment.payment_date.desc())
        .offset(filters.page * filters.size)
        .limit(filters.size)
    )
    return list(result.scalars().all()), total


async def update_payment_status(
    db: AsyncSession,
    caller: Caller,
    payment_id: str,
    status: PaymentStatus,
) -> Payment:
    caller.require(Role.ADMIN)
    payment = await get_payment(db, caller, payment_id)
    previous = payment.status
    payment.status = status.value
    await db.flush()

    if previous != status.value:
        await notify(
            db,
            recipient_id=payment.household_id,
            subject="Payment Status Updated",
            message=f"Payment {payment.transaction_reference} is now {status.value}.",
            notification_type=NotificationType.PAYMENT_CONFIRMATION,
            payment_id=payment.id,
        )
    logger.info(f"Payment {payment.transaction_reference}: {previous} -> {status.value}")
    return payment


async def payment_statistics(
    db: AsyncSession,
    caller: Caller,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> PaymentStatistics:
    caller.require(Role.ADMIN, Role.MUNICIPAL_MANAGER)
    conditions = []
    if start_date:
        conditions.append(Payment.payment_date >= start_date)
    if end_date:
        conditions.append(Payment.payment_date <= end_date)

    count, total, average = (await db.execute(
        select(func.count(Payment.id), func.sum(Payment.amount), func.avg(Payment.amount)).where(*conditions)
    )).one()
    successful = (await db.execute(
        select(func.sum(Payment.amount)).where(Payment.status == PaymentStatus.SUCCESSFUL.value, *conditions)
    )).scalar()
    by_status = (await db.execute(
        select(Payment.status, func.count(Payment.id)).where(*conditions).group_by(Payment.status)
    )).all()
    by_method = (await db.execute(
        select(Payment.payment_method, func.sum(Payment.amount)).where(*conditions).group_by(Payment.payment_method)
    )).all()

    return PaymentStatistics(
        total_payments=count or 0,
        total_amount=round(float(total or 0.0), 2),
        successful_amount=round(float(successful or 0.0), 2),
        average_amount=round(float(average or 0.0), 2),
        by_status={status: n for status, n in by_status},
        by_method={method: round(float(amount or 0.0), 2) for method, amount in by_method},
    )


async def generate_receipt(db: AsyncSession, caller: Caller, payment_id: str) -> Tuple[bytes, str]:
    """PDF receipt and its file name"""
    payment = await get_payment(db, caller, payment_id)

    household = (await db.execute(select(User).where(User.id == payment.household_id))).scalar_one_or_none()
    collector = None
    if payment.collector_id:
        collector = (await db.execute(select(User).where(User.id == payment.collector_id))).scalar_one_or_none()

    pdf = await generate_receipt_pdf(
        payment.to_dict(),
        {"name": household.full_name if household else "-", "address": household.address if household else None},
        {"name": collector.full_name} if collector else None,
    )
    return pdf, f"receipt_{payment.transaction_reference}.pdf"
