import uuid
from datetime import datetime
from decimal import Decimal

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.payments_service.models.enums import (
    PaymentStatus,
    SettlementSource,
    enum_values,
)
from sqlalchemy import CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column


class Payment(Base):
    """A user's intent to deposit funds through the Fawaterak gateway."""

    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(
        String, ForeignKey("users.id"), index=True, nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    status: Mapped[PaymentStatus] = mapped_column(
        SAEnum(
            PaymentStatus,
            name="payment_status_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        default=PaymentStatus.PENDING,
        nullable=False,
    )

    # Free text; set at prepare time and overwritten by the gateway's settled method
    payment_method: Mapped[str | None] = mapped_column(String(64), nullable=True)

    external_invoice_id: Mapped[str | None] = mapped_column(
        String(128), unique=True, nullable=True
    )
    external_invoice_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    settled_via: Mapped[SettlementSource | None] = mapped_column(
        SAEnum(
            SettlementSource,
            name="payment_settlement_source_enum",
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="amount_positive"),
        Index("ix_payments_user_status_amount", "user_id", "status", "amount"),
    )

    def __repr__(self) -> str:
        return f"<Payment {self.id} user={self.user_id} {self.amount} {self.status.value}>"
