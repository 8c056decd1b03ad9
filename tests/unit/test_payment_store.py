"""Unit tests for payment intents and invoice linkage."""

import uuid
from decimal import Decimal

import pytest
from services.payments_service.errors import (
    InvalidAmount,
    PaymentForbidden,
    PaymentNotFound,
)
from services.payments_service.models import Payment, PaymentStatus
from services.payments_service.services.payment_store import (
    attach_invoice,
    find_by_id,
    find_by_invoice_id,
    get_owned_payment,
    parse_amount,
    prepare_payment,
)
from services.wallet_service.services.ledger import UserNotFound
from sqlalchemy import func, select
from tests.factories import PaymentFactory, UserFactory


async def _payment_count(session) -> int:
    return (
        await session.execute(select(func.count()).select_from(Payment))
    ).scalar_one()


async def _status(session, payment_id) -> PaymentStatus:
    return (
        await session.execute(select(Payment.status).where(Payment.id == payment_id))
    ).scalar_one()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_prepare_creates_pending_payment(db_session, user):
    payment = await prepare_payment(
        db_session, user_id=user.id, amount=50, payment_method="card"
    )

    assert payment.status == PaymentStatus.PENDING
    assert payment.amount == Decimal("50.00")
    assert payment.payment_method == "card"
    assert payment.external_invoice_id is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_prepare_supersedes_pending_payment_with_same_amount(db_session, user):
    first = await prepare_payment(db_session, user_id=user.id, amount="50")
    second = await prepare_payment(db_session, user_id=user.id, amount=50.0)

    assert first.id != second.id
    assert await _status(db_session, first.id) == PaymentStatus.CANCELLED
    assert await _status(db_session, second.id) == PaymentStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.unit
async def test_prepare_leaves_other_amounts_and_users_alone(db_session, user):
    other_user = UserFactory.create()
    db_session.add(other_user)
    await db_session.commit()

    different_amount = await prepare_payment(db_session, user_id=user.id, amount=20)
    other_users = await prepare_payment(db_session, user_id=other_user.id, amount=50)
    await prepare_payment(db_session, user_id=user.id, amount=50)

    assert await _status(db_session, different_amount.id) == PaymentStatus.PENDING
    assert await _status(db_session, other_users.id) == PaymentStatus.PENDING


@pytest.mark.asyncio
@pytest.mark.unit
async def test_prepare_does_not_touch_paid_payments(db_session, user):
    paid = PaymentFactory.create(user_id=user.id, status=PaymentStatus.PAID)
    db_session.add(paid)
    await db_session.commit()

    await prepare_payment(db_session, user_id=user.id, amount=paid.amount)

    assert await _status(db_session, paid.id) == PaymentStatus.PAID


@pytest.mark.asyncio
@pytest.mark.unit
@pytest.mark.parametrize(
    "amount", [0, -5, "0.001", "abc", None, "NaN", True, "1e20", "9999999999.995"]
)
async def test_prepare_rejects_invalid_amount(db_session, user, amount):
    with pytest.raises(InvalidAmount):
        await prepare_payment(db_session, user_id=user.id, amount=amount)

    assert await _payment_count(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.unit
async def test_prepare_for_unknown_user(db_session):
    with pytest.raises(UserNotFound):
        await prepare_payment(db_session, user_id="ghost", amount=10)


@pytest.mark.unit
def test_parse_amount_rounds_to_cents():
    assert parse_amount("10.005") == Decimal("10.01")
    assert parse_amount(" 99.9 ") == Decimal("99.90")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_attach_invoice_sets_id_and_url(db_session, user):
    payment = await prepare_payment(db_session, user_id=user.id, amount=50)

    updated = await attach_invoice(
        db_session,
        payment_id=str(payment.id),
        invoice_id="INV1",
        invoice_url="https://pay/x",
        user_id=user.id,
    )

    assert updated.id == payment.id
    assert updated.external_invoice_id == "INV1"
    assert updated.external_invoice_url == "https://pay/x"
    assert (await find_by_invoice_id(db_session, "INV1")).id == payment.id


@pytest.mark.asyncio
@pytest.mark.unit
async def test_attach_invoice_collision_refreshes_existing_url(db_session, user):
    original = await prepare_payment(db_session, user_id=user.id, amount=50)
    await attach_invoice(
        db_session, payment_id=original.id, invoice_id="INV1", invoice_url="https://old"
    )
    original_id = original.id
    retry = await prepare_payment(db_session, user_id=user.id, amount=75)
    retry_id, user_id = retry.id, user.id

    updated = await attach_invoice(
        db_session,
        payment_id=retry_id,
        invoice_id="INV1",
        invoice_url="https://new",
        user_id=user_id,
    )

    assert updated.id == original_id
    assert updated.external_invoice_url == "https://new"
    untouched = await find_by_id(db_session, retry_id)
    assert untouched.external_invoice_id is None
    assert untouched.external_invoice_url is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_attach_invoice_collision_with_other_users_payment(db_session, user):
    other_user = UserFactory.create()
    db_session.add(other_user)
    theirs = PaymentFactory.create(
        user_id=other_user.id,
        external_invoice_id="INV1",
        external_invoice_url="https://theirs",
    )
    db_session.add(theirs)
    await db_session.commit()
    theirs_id, user_id = theirs.id, user.id
    mine = await prepare_payment(db_session, user_id=user_id, amount=50)

    result = await attach_invoice(
        db_session,
        payment_id=mine.id,
        invoice_id="INV1",
        invoice_url="https://mine",
        user_id=user_id,
    )

    assert result is None
    assert (await find_by_id(db_session, theirs_id)).external_invoice_url == (
        "https://theirs"
    )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_attach_invoice_refuses_foreign_payment(db_session, user):
    payment = await prepare_payment(db_session, user_id=user.id, amount=50)

    result = await attach_invoice(
        db_session,
        payment_id=payment.id,
        invoice_id="INV9",
        invoice_url="https://pay/9",
        user_id="someone-else",
    )

    assert result is None
    assert await find_by_invoice_id(db_session, "INV9") is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_attach_invoice_unknown_payment(db_session):
    result = await attach_invoice(
        db_session, payment_id=uuid.uuid4(), invoice_id="INV1", invoice_url="u"
    )

    assert result is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_find_by_id_tolerates_malformed_ids(db_session):
    assert await find_by_id(db_session, "not-a-uuid") is None
    assert await find_by_id(db_session, None) is None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_owned_payment(db_session, user):
    payment = await prepare_payment(db_session, user_id=user.id, amount=50)

    assert (await get_owned_payment(db_session, str(payment.id), user.id)).id == (
        payment.id
    )
    with pytest.raises(PaymentForbidden):
        await get_owned_payment(db_session, payment.id, "intruder")
    with pytest.raises(PaymentNotFound):
        await get_owned_payment(db_session, uuid.uuid4(), user.id)
