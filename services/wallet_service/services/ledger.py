"""Balance ledger: the only code path that changes ``User.balance``.

Balances move through a single atomic ``UPDATE users SET balance = balance + :amount``
so concurrent credits never lose an update, and every change appends one
``BalanceTransaction`` in the same unit of work.
"""

from decimal import Decimal
from typing import Optional

from fastapi import HTTPException, status
from libs.common.datetime_utils import utc_now
from libs.common.logging import get_logger
from services.wallet_service.models import BalanceTransaction, TransactionType, User
from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class UserNotFound(HTTPException):
    def __init__(self, detail: str = "User not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


# ---------------------------------------------------------------------------
# Credit (atomic)
# ---------------------------------------------------------------------------


async def credit_balance(
    db: AsyncSession,
    *,
    user_id: str,
    amount: Decimal,
    description: str,
    idempotency_key: Optional[str] = None,
    reference_type: Optional[str] = None,
    reference_id: Optional[str] = None,
    commit: bool = True,
) -> Decimal:
    """Atomically add ``amount`` to a user's balance and append a DEPOSIT row.

    Returns the balance after the increment. With ``commit=False`` the caller
    owns the unit of work and must commit or roll back; this is how the
    payment settlement makes "mark PAID", "increment" and "append ledger row"
    durable together.
    """
    if amount <= 0:
        raise ValueError("credit amount must be positive")

    result = await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(balance=User.balance + amount, updated_at=utc_now())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        if commit:
            await db.rollback()
        raise UserNotFound()

    db.add(
        BalanceTransaction(
            user_id=user_id,
            amount=amount,
            transaction_type=TransactionType.DEPOSIT,
            description=description,
            idempotency_key=idempotency_key,
            reference_type=reference_type,
            reference_id=reference_id,
        )
    )
    await db.flush()

    # Row is write-locked by the update above until this unit of work ends,
    # so this read observes our own increment.
    new_balance = (
        await db.execute(select(User.balance).where(User.id == user_id))
    ).scalar_one()

    if commit:
        await db.commit()

    logger.info("Credited %s to user %s, balance now %s", amount, user_id, new_balance)
    return new_balance


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def get_balance(db: AsyncSession, user_id: str) -> Decimal:
    """Current balance; zero for a user without a row yet."""
    balance = (
        await db.execute(select(User.balance).where(User.id == user_id))
    ).scalar_one_or_none()
    return balance if balance is not None else Decimal("0")


async def list_transactions(
    db: AsyncSession, user_id: str, *, skip: int = 0, limit: int = 50
) -> tuple[list[BalanceTransaction], int]:
    """Newest-first page of a user's ledger rows plus the total row count."""
    total = (
        await db.execute(
            select(func.count())
            .select_from(BalanceTransaction)
            .where(BalanceTransaction.user_id == user_id)
        )
    ).scalar() or 0

    result = await db.execute(
        select(BalanceTransaction)
        .where(BalanceTransaction.user_id == user_id)
        .order_by(desc(BalanceTransaction.created_at))
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def ledger_total(db: AsyncSession, user_id: str) -> Decimal:
    """Sum of a user's ledger rows, for reconciling against ``User.balance``."""
    total = (
        await db.execute(
            select(func.coalesce(func.sum(BalanceTransaction.amount), 0)).where(
                BalanceTransaction.user_id == user_id
            )
        )
    ).scalar_one()
    return Decimal(str(total))
