"""Fawaterak webhook verification and processing.

The paid-webhook endpoint carries no caller identity; the HMAC over
``InvoiceId=..&InvoiceKey=..&PaymentMethod=..`` keyed with the API key is its
only authentication.
"""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.logging import get_logger
from services.payments_service.errors import (
    InvalidSignature,
    PaymentConfigurationError,
    PaymentNotFound,
)
from services.payments_service.models import Payment, SettlementSource
from services.payments_service.services.invoice_service import parse_pay_load
from services.payments_service.services.payment_store import (
    find_by_id,
    find_by_invoice_id,
)
from services.payments_service.services.settlement import settle_payment
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

PAID_STATUS = "paid"


@dataclass
class PaidWebhook:
    """Fields of a paid-invoice notification as delivered by the gateway."""

    hash_key: Any
    invoice_key: Any
    invoice_id: Any
    payment_method: Any
    invoice_status: Any
    pay_load: Any = None
    reference_number: Any = None


def _field(value: Any) -> str:
    return "" if value is None else str(value)


def _hmac_hex(key: str, message: str) -> str:
    return hmac.new(
        key.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()


def compute_webhook_signature(
    api_key: str, invoice_id: Any, invoice_key: Any, payment_method: Any
) -> str:
    """Hex HMAC-SHA256 the gateway sends as ``hashKey``."""
    message = (
        f"InvoiceId={_field(invoice_id)}"
        f"&InvoiceKey={_field(invoice_key)}"
        f"&PaymentMethod={_field(payment_method)}"
    )
    return _hmac_hex(api_key, message)


def verify_webhook_signature(api_key: str, webhook: PaidWebhook) -> bool:
    if not webhook.hash_key:
        return False
    expected = compute_webhook_signature(
        api_key, webhook.invoice_id, webhook.invoice_key, webhook.payment_method
    )
    return hmac.compare_digest(expected, str(webhook.hash_key))


def normalize_domain(host: Optional[str]) -> str:
    """Bare host name for the checkout widget hash."""
    domain = (host or "").strip() or "localhost"
    if domain.startswith("["):
        # Bracketed IPv6 literal, optionally with a port
        domain = domain[1 : domain.find("]")] if "]" in domain else domain[1:]
    else:
        domain = domain.split(":", 1)[0]
    if domain == "127.0.0.1":
        return "localhost"
    return domain or "localhost"


def compute_domain_hash(api_key: str, provider_key: str, domain: str) -> str:
    """Hex HMAC-SHA256 over ``Domain=<domain>&ProviderKey=<key>``."""
    return _hmac_hex(api_key, f"Domain={domain}&ProviderKey={provider_key}")


async def _resolve_payment(
    db: AsyncSession, webhook: PaidWebhook
) -> Optional[Payment]:
    invoice_key = _field(webhook.invoice_key) or None
    payment = await find_by_invoice_id(db, invoice_key)
    if payment is not None:
        return payment

    pay_load = parse_pay_load(webhook.pay_load)
    payment_id = pay_load.get("paymentId") if pay_load else None
    if not payment_id:
        return None

    payment = await find_by_id(db, payment_id)
    if payment is None or not invoice_key or payment.external_invoice_id:
        return payment

    # Backfill so redeliveries resolve by invoice key.
    payment_pk = payment.id
    try:
        await db.execute(
            update(Payment)
            .where(Payment.id == payment_pk, Payment.external_invoice_id.is_(None))
            .values(external_invoice_id=invoice_key)
            .execution_options(synchronize_session=False)
        )
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning(
            "Invoice key %s already linked elsewhere; not backfilling payment %s",
            invoice_key,
            payment_pk,
        )
    return await find_by_id(db, payment_pk)


async def process_paid_webhook(db: AsyncSession, webhook: PaidWebhook) -> dict:
    """Verify a paid-invoice notification and settle the payment it names."""
    api_key = get_settings().FAWATERAK_API_KEY
    if not api_key:
        raise PaymentConfigurationError()

    if not verify_webhook_signature(api_key, webhook):
        logger.warning(
            "Rejected webhook for invoice %s: invalid hash key", webhook.invoice_id
        )
        raise InvalidSignature()

    if _field(webhook.invoice_status).strip().lower() != PAID_STATUS:
        logger.info(
            "Ignoring webhook for invoice %s with status %r",
            webhook.invoice_id,
            webhook.invoice_status,
        )
        return {"success": True, "message": "Status is not paid, ignoring"}

    payment = await _resolve_payment(db, webhook)
    if payment is None:
        logger.warning(
            "Webhook for unknown payment: invoice_key=%s invoice_id=%s",
            webhook.invoice_key,
            webhook.invoice_id,
        )
        raise PaymentNotFound()

    result = await settle_payment(
        db,
        payment=payment,
        source=SettlementSource.WEBHOOK,
        payment_method=_field(webhook.payment_method) or None,
    )
    payment_id = str(result.payment.id)
    if not result.settled:
        return {"success": True, "message": "already processed", "paymentId": payment_id}
    return {
        "success": True,
        "paymentId": payment_id,
        "newBalance": float(result.balance),
    }
