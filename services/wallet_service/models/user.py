"""User model: the balance-bearing account row."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from sqlalchemy import CheckConstraint, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship


class User(Base):
    """Platform user. Identity and profile are owned by the auth layer;
    this service only ever changes ``balance``, and only through the ledger.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String, unique=True, nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(
        String, unique=True, nullable=True
    )
    balance: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), default=Decimal("0"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    balance_transactions: Mapped[list["BalanceTransaction"]] = relationship(  # noqa: F821
        back_populates="user", lazy="raise"
    )

    __table_args__ = (
        CheckConstraint("balance >= 0", name="balance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<User {self.id} balance={self.balance}>"
