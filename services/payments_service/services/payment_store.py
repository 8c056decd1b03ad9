"""Payment record store: intents, supersede-on-retry and invoice linkage."""

import uuid
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.payments_service.errors import (
    InvalidAmount,
    PaymentForbidden,
    PaymentNotFound,
)
from services.payments_service.models import Payment, PaymentStatus
from services.wallet_service.models import User
from services.wallet_service.services.ledger import UserNotFound
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

CENT = Decimal("0.01")
# Payment.amount is Numeric(12, 2)
MAX_AMOUNT = Decimal("1e10")


def parse_amount(value: Any) -> Decimal:
    """Coerce a request amount to a positive two-decimal ``Decimal``."""
    if value is None or isinstance(value, bool):
        raise InvalidAmount()
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount()
    if not amount.is_finite():
        raise InvalidAmount()
    if amount >= MAX_AMOUNT:
        raise InvalidAmount()
    amount = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if amount <= 0 or amount >= MAX_AMOUNT:
        raise InvalidAmount()
    return amount


def parse_payment_id(value: Any) -> Optional[uuid.UUID]:
    """UUID from a client-supplied id, or ``None`` when it cannot be one."""
    if isinstance(value, uuid.UUID):
        return value
    if value is None:
        return None
    try:
        return uuid.UUID(str(value).strip())
    except ValueError:
        return None


async def prepare_payment(
    db: AsyncSession,
    *,
    user_id: str,
    amount: Any,
    payment_method: Optional[str] = None,
) -> Payment:
    """Create a PENDING payment, cancelling the caller's PENDING twin.

    Only PENDING payments with exactly the same amount are superseded; a
    PENDING payment for a different amount is left untouched.
    """
    amount = parse_amount(amount)

    user_exists = (
        await db.execute(select(User.id).where(User.id == user_id))
    ).scalar_one_or_none()
    if user_exists is None:
        raise UserNotFound()

    superseded = await db.execute(
        update(Payment)
        .where(
            Payment.user_id == user_id,
            Payment.amount == amount,
            Payment.status == PaymentStatus.PENDING,
        )
        .values(status=PaymentStatus.CANCELLED, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )

    payment = Payment(
        user_id=user_id,
        amount=amount,
        status=PaymentStatus.PENDING,
        payment_method=payment_method or None,
    )
    db.add(payment)
    await db.commit()

    if superseded.rowcount:
        logger.info(
            "Cancelled %d pending payment(s) of %s for user %s",
            superseded.rowcount,
            amount,
            user_id,
        )
    logger.info("Prepared payment %s of %s for user %s", payment.id, amount, user_id)
    return payment


async def find_by_id(db: AsyncSession, payment_id: Any) -> Optional[Payment]:
    parsed = parse_payment_id(payment_id)
    if parsed is None:
        return None
    result = await db.execute(select(Payment).where(Payment.id == parsed))
    return result.scalar_one_or_none()


async def find_by_invoice_id(
    db: AsyncSession, invoice_id: Optional[str]
) -> Optional[Payment]:
    if not invoice_id:
        return None
    result = await db.execute(
        select(Payment).where(Payment.external_invoice_id == str(invoice_id))
    )
    return result.scalar_one_or_none()


async def get_owned_payment(
    db: AsyncSession, payment_id: Any, user_id: str
) -> Payment:
    """Payment by id for its owner; 404 when missing, 403 for anyone else."""
    payment = await find_by_id(db, payment_id)
    if payment is None:
        raise PaymentNotFound()
    if payment.user_id != user_id:
        raise PaymentForbidden()
    return payment


async def attach_invoice(
    db: AsyncSession,
    *,
    payment_id: Any,
    invoice_id: Optional[str],
    invoice_url: Optional[str],
    user_id: Optional[str] = None,
) -> Optional[Payment]:
    """Link a gateway invoice to a payment.

    When ``invoice_id`` is already held by another payment (the gateway
    reused an invoice for a retried checkout) only that payment's URL is
    refreshed. With ``user_id`` set, payments owned by someone else are never
    touched. Returns the payment that was updated, or ``None``.
    """
    payment = await find_by_id(db, payment_id)
    if payment is None:
        logger.warning("Invoice %s references unknown payment %s", invoice_id, payment_id)
        return None
    if user_id is not None and payment.user_id != user_id:
        logger.warning(
            "Refusing to attach invoice %s to payment %s owned by another user",
            invoice_id,
            payment.id,
        )
        return None

    # Captured before any rollback expires the instance.
    target_id = payment.id
    invoice_id = str(invoice_id) if invoice_id else None

    values: dict[str, Any] = {"updated_at": utc_now()}
    if invoice_id:
        values["external_invoice_id"] = invoice_id
    if invoice_url:
        values["external_invoice_url"] = invoice_url

    try:
        await db.execute(
            update(Payment)
            .where(Payment.id == target_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await find_by_invoice_id(db, invoice_id)
        if existing is None:
            raise
        if user_id is not None and existing.user_id != user_id:
            logger.warning(
                "Invoice %s already belongs to another user's payment %s",
                invoice_id,
                existing.id,
            )
            return None
        existing_id = existing.id
        if invoice_url:
            await db.execute(
                update(Payment)
                .where(Payment.id == existing_id)
                .values(external_invoice_url=invoice_url, updated_at=utc_now())
                .execution_options(synchronize_session=False)
            )
            await db.commit()
        logger.info(
            "Invoice %s already linked to payment %s, refreshed its URL",
            invoice_id,
            existing_id,
        )
        return await _reload(db, existing_id)

    logger.info("Attached invoice %s to payment %s", invoice_id, target_id)
    return await _reload(db, target_id)


async def _reload(db: AsyncSession, payment_id: uuid.UUID) -> Payment:
    result = await db.execute(
        select(Payment)
        .where(Payment.id == payment_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()
