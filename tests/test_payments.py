import pytest
from sqlalchemy import select

from app.core.exceptions import AuthorizationError, ValidationError, NotFoundError
from app.models import Role, Notification, PaymentMethod, PaymentStatus
from app.schemas import PaymentCreate, PaymentFilter
from app.services import payments as payment_service

from tests.conftest import caller_for, run_to_completion


@pytest.fixture
async def household(make_user, municipality):
    return await make_user(Role.HOUSEHOLD, municipality)


@pytest.fixture
async def collector(make_user, municipality):
    return await make_user(Role.COLLECTOR, municipality)


@pytest.fixture
async def admin(make_user):
    return await make_user(Role.ADMIN)


def _payment(request_id, amount=1500, **fields):
    return PaymentCreate(
        service_request_id=request_id,
        amount=amount,
        payment_method=fields.pop("payment_method", PaymentMethod.MOBILE_MONEY),
        **fields,
    )


async def test_payment_notifies_household_and_collector(db, household, collector):
    request = await run_to_completion(db, household, collector)

    payment = await payment_service.process_payment(db, caller_for(household), _payment(request.id))

    assert payment.status == PaymentStatus.SUCCESSFUL.value
    assert payment.collector_id == collector.id
    assert payment.transaction_reference
    recipients = (await db.execute(
        select(Notification.recipient_id).where(Notification.payment_id == payment.id)
    )).scalars().all()
    assert sorted(recipients) == sorted([household.id, collector.id])


async def test_pending_payment_sends_no_confirmation(db, household, collector):
    request = await run_to_completion(db, household, collector)
    payment = await payment_service.process_payment(
        db, caller_for(household), _payment(request.id, status=PaymentStatus.PENDING)
    )
    notifications = (await db.execute(
        select(Notification).where(Notification.payment_id == payment.id)
    )).scalars().all()
    assert notifications == []


async def test_duplicate_reference_is_rejected(db, household, collector):
    request = await run_to_completion(db, household, collector)
    await payment_service.process_payment(
        db, caller_for(household), _payment(request.id, transaction_reference="MM-0001")
    )
    with pytest.raises(ValidationError, match="already used"):
        await payment_service.process_payment(
            db, caller_for(household), _payment(request.id, transaction_reference="MM-0001")
        )


@pytest.mark.parametrize("amount", [0, -250])
async def test_non_positive_amount_is_rejected(db, household, collector, amount):
    request = await run_to_completion(db, household, collector)
    with pytest.raises(ValidationError):
        await payment_service.process_payment(db, caller_for(household), _payment(request.id, amount=amount))


async def test_household_pays_only_its_own_requests(db, household, collector, make_user, municipality):
    neighbour = await make_user(Role.HOUSEHOLD, municipality)
    request = await run_to_completion(db, household, collector)
    with pytest.raises(AuthorizationError):
        await payment_service.process_payment(db, caller_for(neighbour), _payment(request.id))


async def test_unknown_request_is_not_found(db, household):
    with pytest.raises(NotFoundError):
        await payment_service.process_payment(db, caller_for(household), _payment("missing"))


async def test_history_is_scoped_to_the_caller(db, household, collector, admin, make_user, municipality):
    neighbour = await make_user(Role.HOUSEHOLD, municipality)
    mine = await run_to_completion(db, household, collector)
    theirs = await run_to_completion(db, neighbour, collector)
    await payment_service.process_payment(db, caller_for(household), _payment(mine.id))
    await payment_service.process_payment(db, caller_for(neighbour), _payment(theirs.id, amount=800))

    items, total = await payment_service.payment_history(db, caller_for(household), PaymentFilter())
    assert total == 1
    assert items[0].household_id == household.id

    _, total = await payment_service.payment_history(db, caller_for(collector), PaymentFilter())
    assert total == 2

    items, total = await payment_service.payment_history(
        db, caller_for(admin), PaymentFilter(household_id=neighbour.id)
    )
    assert total == 1
    assert items[0].amount == 800


async def test_statistics(db, household, collector, admin):
    first = await run_to_completion(db, household, collector)
    second = await run_to_completion(db, household, collector)
    await payment_service.process_payment(db, caller_for(household), _payment(first.id, amount=1000))
    await payment_service.process_payment(db, caller_for(household), _payment(
        second.id, amount=3000, payment_method=PaymentMethod.CASH, status=PaymentStatus.PENDING,
    ))

    stats = await payment_service.payment_statistics(db, caller_for(admin))
    assert stats.total_payments == 2
    assert stats.total_amount == 4000
    assert stats.successful_amount == 1000
    assert stats.average_amount == 2000
    assert stats.by_status == {"SUCCESSFUL": 1, "PENDING": 1}
    assert stats.by_method == {"MOBILE_MONEY": 1000, "CASH": 3000}

    with pytest.raises(AuthorizationError):
        await payment_service.payment_statistics(db, caller_for(household))


async def test_only_admins_change_payment_status(db, household, collector, admin):
    request = await run_to_completion(db, household, collector)
    payment = await payment_service.process_payment(db, caller_for(household), _payment(request.id))

    with pytest.raises(AuthorizationError):
        await payment_service.update_payment_status(db, caller_for(household), payment.id, PaymentStatus.REFUNDED)

    updated = await payment_service.update_payment_status(db, caller_for(admin), payment.id, PaymentStatus.REFUNDED)
    assert updated.status == PaymentStatus.REFUNDED.value
    subjects = (await db.execute(
        select(Notification.subject).where(Notification.recipient_id == household.id)
    )).scalars().all()
    assert "Payment Status Updated" in subjects


async def test_receipt_is_a_pdf(db, household, collector):
    request = await run_to_completion(db, household, collector)
    payment = await payment_service.process_payment(db, caller_for(household), _payment(request.id))

    content, filename = await payment_service.generate_receipt(db, caller_for(household), payment.id)
    assert content.startswith(b"%PDF")
    assert filename == f"receipt_{payment.transaction_reference}.pdf"
