"""Invoice creation against Fawaterak and linking the result to a payment."""

import json
from typing import Any, Optional

from libs.common.config import get_settings
from libs.common.datetime_utils import utc_isoformat
from libs.common.logging import get_logger
from services.payments_service.errors import InvoiceCreationFailed
from services.payments_service.fawaterak_client import (
    CREATE_INVOICE_LINK,
    INVOICE_INIT_PAY,
    FawaterakClient,
    FawaterakError,
)
from services.payments_service.models import Payment
from services.payments_service.services.invoice_links import extract_invoice_link
from services.payments_service.services.payment_store import attach_invoice, find_by_id
from services.wallet_service.models import User
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

NO_INVOICE_URL = "Invalid response from Fawaterak - no invoice URL found"
DEPOSIT_ITEM_NAME = "Balance top-up"


def parse_pay_load(value: Any) -> Optional[dict]:
    """The echoed opaque payload, given as an object or a JSON string."""
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            logger.warning("Could not parse payLoad as JSON")
            return None
        return parsed if isinstance(parsed, dict) else None
    return None


def select_invoice_endpoint(original_url: Optional[str]) -> str:
    """Gateway endpoint the checkout widget was aiming at."""
    original_url = original_url or ""
    if "invoiceInitPay" in original_url or "initPay" in original_url:
        return INVOICE_INIT_PAY
    return CREATE_INVOICE_LINK


def build_invoice_request(
    payment: Payment,
    user: User,
    app_url: str,
    *,
    currency: Optional[str] = None,
    payment_method_id: Any = None,
) -> dict:
    """Server-side invoice body for a stored payment."""
    base_url = app_url.rstrip("/")
    amount = float(payment.amount)
    name_parts = (user.full_name or "").split()

    invoice = {
        "cartTotal": amount,
        "currency": currency or get_settings().PAYMENT_CURRENCY,
        "redirectOutIframe": True,
        "customer": {
            "customer_unique_id": user.id,
            "first_name": name_parts[0] if name_parts else "User",
            "last_name": " ".join(name_parts[1:]),
            "email": user.email or f"{user.id}@example.com",
            "phone": user.phone_number or "",
        },
        "redirectionUrls": {
            "successUrl": f"{base_url}/payment/success?payment={payment.id}",
            "failUrl": f"{base_url}/payment/fail?payment={payment.id}",
            "pendingUrl": f"{base_url}/payment/pending?payment={payment.id}",
        },
        "webhookUrl": f"{base_url}/api/payment/fawaterak/webhook/paid",
        "cartItems": [
            {"name": DEPOSIT_ITEM_NAME, "price": amount, "quantity": "1"},
        ],
        "deduct_total_amount": 1,
        "payLoad": {
            "paymentId": str(payment.id),
            "userId": user.id,
            "timestamp": utc_isoformat(),
        },
    }
    if payment_method_id is not None:
        invoice["payment_method_id"] = payment_method_id
    return invoice


def present_invoice_response(
    gateway_response: dict, invoice_url: str, invoice_key: Optional[str]
) -> dict:
    """Client-facing shape: gateway fields plus normalised ``invoiceUrl``/``invoiceKey``."""
    gateway_data = gateway_response.get("data")
    data = {"invoiceUrl": invoice_url, "invoiceKey": invoice_key}
    if isinstance(gateway_data, dict):
        # Merged over the normalised keys, never replacing them wholesale
        data.update(gateway_data)
    body = {"success": True}
    body.update({k: v for k, v in gateway_response.items() if k != "data"})
    body["data"] = data
    return body


async def _resolve_invoice_body(
    db: AsyncSession, body: dict, user_id: str
) -> tuple[dict, Optional[str]]:
    """Invoice body to send upstream plus the payment id it settles."""
    pay_load = parse_pay_load(body.get("payLoad"))
    payment_id = (pay_load or {}).get("paymentId") or body.get("paymentId")
    if payment_id is not None:
        payment_id = str(payment_id)

    if "cartTotal" in body or not payment_id:
        invoice_body = {k: v for k, v in body.items() if k != "paymentId"}
        return invoice_body, payment_id

    # Only a payment id was sent: build the invoice from the stored payment.
    payment = await find_by_id(db, payment_id)
    if payment is None or payment.user_id != user_id:
        return {k: v for k, v in body.items() if k != "paymentId"}, None
    user = (
        await db.execute(select(User).where(User.id == user_id))
    ).scalar_one_or_none()
    if user is None:
        return {k: v for k, v in body.items() if k != "paymentId"}, None
    invoice_body = build_invoice_request(
        payment,
        user,
        get_settings().APP_URL,
        payment_method_id=body.get("payment_method_id"),
    )
    return invoice_body, payment_id


async def create_invoice(
    db: AsyncSession,
    client: FawaterakClient,
    *,
    body: dict,
    user_id: str,
    original_url: Optional[str] = None,
) -> tuple[dict, str, Optional[str]]:
    """Create the remote invoice and attach it to the caller's payment.

    Returns ``(gateway_response, invoice_url, invoice_key)``. Gateway
    failures and responses without a redirect URL raise
    ``InvoiceCreationFailed``; nothing is attached on an upstream error.
    """
    invoice_body, payment_id = await _resolve_invoice_body(db, body, user_id)
    endpoint = select_invoice_endpoint(original_url)
    logger.info("Creating Fawaterak invoice via %s for payment %s", endpoint, payment_id)

    try:
        response = await client.create_invoice(invoice_body, endpoint=endpoint)
    except FawaterakError as exc:
        logger.error(
            "Invoice creation for payment %s failed: %s (%s)",
            payment_id,
            exc.message,
            exc.status_code,
        )
        raise InvoiceCreationFailed(status_code=exc.status_code)

    link = extract_invoice_link(response)

    if not link.invoice_url:
        logger.error("No invoice URL in Fawaterak response for payment %s", payment_id)
        if payment_id and link.invoice_id:
            await attach_invoice(
                db,
                payment_id=payment_id,
                invoice_id=link.invoice_id,
                invoice_url=None,
                user_id=user_id,
            )
        raise InvoiceCreationFailed(
            detail={"error": NO_INVOICE_URL, "response": response},
            status_code=500,
        )

    if payment_id:
        await attach_invoice(
            db,
            payment_id=payment_id,
            invoice_id=link.invoice_id,
            invoice_url=link.invoice_url,
            user_id=user_id,
        )

    return response, link.invoice_url, link.invoice_id
