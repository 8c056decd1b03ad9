"""Settlement: the one place a payment moves PENDING -> PAID.

The webhook and the confirm fallback both call ``settle_payment``. The
transition is a conditional ``UPDATE ... WHERE status = 'PENDING'``; only the
caller whose update hits a row goes on to credit the balance, inside the same
transaction. The loser sees zero rows and reports the payment as already
settled.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.payments_service.errors import PaymentNotFound, PaymentNotSettleable
from services.payments_service.models import Payment, PaymentStatus, SettlementSource
from services.wallet_service.services.ledger import credit_balance, get_balance
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass
class SettlementResult:
    payment: Payment
    settled: bool
    balance: Decimal


def deposit_description(amount: Decimal, payment_method: Optional[str]) -> str:
    currency = get_settings().PAYMENT_CURRENCY
    return f"Added {amount} {currency} to balance via {payment_method or 'Fawaterak'}"


async def settle_payment(
    db: AsyncSession,
    *,
    payment: Payment,
    source: SettlementSource,
    payment_method: Optional[str] = None,
) -> SettlementResult:
    """Mark ``payment`` PAID and credit its owner, at most once.

    ``settled`` is False when another caller got there first; the returned
    balance is then the owner's current balance. A CANCELLED payment raises
    ``PaymentNotSettleable``.
    """
    # Plain values; a rollback below expires the ORM instance.
    payment_id = payment.id
    user_id = payment.user_id
    amount = payment.amount
    existing_method = payment.payment_method

    values = {
        "status": PaymentStatus.PAID,
        "paid_at": utc_now(),
        "settled_via": source,
        "updated_at": utc_now(),
    }
    if payment_method:
        values["payment_method"] = payment_method

    try:
        result = await db.execute(
            update(Payment)
            .where(Payment.id == payment_id, Payment.status == PaymentStatus.PENDING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount != 1:
            await db.rollback()
            current = await _reload(db, payment_id)
            if current is None:
                raise PaymentNotFound()
            if current.status == PaymentStatus.CANCELLED:
                logger.warning(
                    "Refusing to settle cancelled payment %s via %s",
                    payment_id,
                    source.value,
                )
                raise PaymentNotSettleable()
            logger.info(
                "Payment %s already settled via %s, %s is a no-op",
                payment_id,
                current.settled_via.value if current.settled_via else "unknown",
                source.value,
            )
            return SettlementResult(
                payment=current,
                settled=False,
                balance=await get_balance(db, user_id),
            )

        effective_method = payment_method or existing_method
        new_balance = await credit_balance(
            db,
            user_id=user_id,
            amount=amount,
            description=deposit_description(amount, effective_method),
            idempotency_key=f"payment-{payment_id}",
            reference_type="payment",
            reference_id=str(payment_id),
            commit=False,
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Settled payment %s via %s: credited %s to user %s",
        payment_id,
        source.value,
        amount,
        user_id,
    )
    return SettlementResult(
        payment=await _reload(db, payment_id),
        settled=True,
        balance=new_balance,
    )


async def _reload(db: AsyncSession, payment_id) -> Optional[Payment]:
    result = await db.execute(
        select(Payment)
        .where(Payment.id == payment_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()
