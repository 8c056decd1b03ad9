"""BalanceTransaction model: append-only balance ledger."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.wallet_service.models.enums import TransactionType, enum_values
from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship


class BalanceTransaction(Base):
    """Audit trail of every balance change.

    ``amount`` is signed: deposits are positive, purchases negative. The sum
    of a user's rows equals ``User.balance``.
    """

    __tablename__ = "balance_transactions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    transaction_type: Mapped[TransactionType] = mapped_column(
        SAEnum(
            TransactionType,
            name="balance_transaction_type_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(String, nullable=False)
    # One ledger row per settled payment; a second insert for the same key fails.
    idempotency_key: Mapped[Optional[str]] = mapped_column(
        String, unique=True, nullable=True
    )
    reference_type: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    reference_id: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    user: Mapped["User"] = relationship(  # noqa: F821
        back_populates="balance_transactions", lazy="raise"
    )

    __table_args__ = (
        Index("ix_balance_transactions_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<BalanceTransaction {self.id} {self.transaction_type.value} {self.amount}>"
