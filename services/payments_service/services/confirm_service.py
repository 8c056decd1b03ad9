"""Owner-initiated settlement for when the webhook is late or lost."""

from typing import Any

from libs.common.logging import get_logger
from services.payments_service.errors import PaymentValidationError
from services.payments_service.models import SettlementSource
from services.payments_service.services.payment_store import get_owned_payment
from services.payments_service.services.settlement import settle_payment
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def confirm_payment(db: AsyncSession, *, user_id: str, payment_id: Any) -> dict:
    if not payment_id:
        raise PaymentValidationError("Payment ID is required")

    payment = await get_owned_payment(db, payment_id, user_id)
    result = await settle_payment(db, payment=payment, source=SettlementSource.CONFIRM)

    if not result.settled:
        message = "Payment already processed"
    else:
        logger.info("Payment %s confirmed by its owner", result.payment.id)
        message = "Payment confirmed and balance updated"
    return {
        "success": True,
        "message": message,
        "status": result.payment.status.value,
        "balance": float(result.balance),
    }
