"""Fawaterak checkout endpoints: prepare, invoice, confirm and webhook."""

from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.config import get_settings
from libs.common.logging import get_logger
from libs.common.rate_limit import PAYMENT_RATE_LIMIT, limiter
from libs.db.session import get_async_db
from services.payments_service.errors import (
    PaymentConfigurationError,
    PaymentGatewayError,
    PaymentValidationError,
)
from services.payments_service.fawaterak_client import (
    FawaterakClient,
    FawaterakError,
    get_fawaterak_client,
)
from services.payments_service.schemas import (
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    DomainHashResponse,
    PaidWebhookRequest,
    PaymentMethodItem,
    PaymentMethodsResponse,
    PaymentStatusResponse,
    PreparePaymentRequest,
    PreparePaymentResponse,
    WebhookResponse,
)
from services.payments_service.services.confirm_service import confirm_payment
from services.payments_service.services.invoice_service import (
    create_invoice,
    present_invoice_response,
)
from services.payments_service.services.payment_store import (
    get_owned_payment,
    prepare_payment,
)
from services.payments_service.services.webhook_service import (
    PaidWebhook,
    compute_domain_hash,
    normalize_domain,
    process_paid_webhook,
)
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/api/payment/fawaterak", tags=["fawaterak"])
logger = get_logger(__name__)


def require_gateway_config() -> None:
    """Fail fast when the deployment has no Fawaterak API key."""
    if not get_settings().FAWATERAK_API_KEY:
        raise PaymentConfigurationError()


def _is_plugin_proxy(request: Request) -> bool:
    return request.headers.get("X-Plugin-Proxy", "").lower() == "true"


async def _json_object(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        raise PaymentValidationError("Request body must be JSON")
    if not isinstance(body, dict):
        raise PaymentValidationError("Request body must be a JSON object")
    return body


def _format_methods(gateway_response: dict) -> list[PaymentMethodItem]:
    raw_methods = gateway_response.get("data")
    if not isinstance(raw_methods, list):
        return []
    methods = []
    for index, method in enumerate(raw_methods):
        if not isinstance(method, dict):
            continue
        method_id = method.get("id")
        methods.append(
            PaymentMethodItem(
                id=f"{method_id}-{index}",
                original_id=method_id,
                name=str(method.get("name_ar") or method.get("name") or method_id),
                icon=method.get("icon") or None,
                commission=method.get("commission") or 0,
            )
        )
    return methods


@router.post("/prepare", response_model=PreparePaymentResponse)
@limiter.limit(PAYMENT_RATE_LIMIT)
async def prepare(
    request: Request,
    payload: PreparePaymentRequest,
    current_user: AuthUser = Depends(get_current_user),
    _: None = Depends(require_gateway_config),
    db: AsyncSession = Depends(get_async_db),
):
    """Create a PENDING payment for the caller, superseding an identical one."""
    payment = await prepare_payment(
        db,
        user_id=current_user.user_id,
        amount=payload.amount,
        payment_method=payload.payment_method,
    )
    return PreparePaymentResponse(payment_id=payment.id)


@router.post("/create-invoice")
@limiter.limit(PAYMENT_RATE_LIMIT)
async def create_invoice_link(
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
    client: FawaterakClient = Depends(get_fawaterak_client),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Create a Fawaterak invoice for one of the caller's payments.

    The body is the gateway's invoice payload (``payLoad.paymentId`` names the
    payment), or just ``{"paymentId": ...}`` to have it built server-side.
    Plugin-proxy callers (``X-Plugin-Proxy: true``) get the gateway JSON back
    untouched.
    """
    body = await _json_object(request)
    gateway_response, invoice_url, invoice_key = await create_invoice(
        db,
        client,
        body=body,
        user_id=current_user.user_id,
        original_url=request.headers.get("X-Original-URL"),
    )
    if _is_plugin_proxy(request):
        return JSONResponse(content=gateway_response)
    return present_invoice_response(gateway_response, invoice_url, invoice_key)


@router.post("/confirm-payment", response_model=ConfirmPaymentResponse)
async def confirm(
    payload: ConfirmPaymentRequest,
    current_user: AuthUser = Depends(get_current_user),
    _: None = Depends(require_gateway_config),
    db: AsyncSession = Depends(get_async_db),
):
    """Settle the caller's payment when the webhook has not arrived yet."""
    return await confirm_payment(
        db, user_id=current_user.user_id, payment_id=payload.payment_id
    )


@router.post(
    "/webhook/paid",
    response_model=WebhookResponse,
    response_model_exclude_none=True,
)
async def paid_webhook(
    payload: PaidWebhookRequest,
    db: AsyncSession = Depends(get_async_db),
):
    """
    Fawaterak paid-invoice webhook (no auth; verified by ``hashKey``).
    """
    return await process_paid_webhook(
        db,
        PaidWebhook(
            hash_key=payload.hash_key,
            invoice_key=payload.invoice_key,
            invoice_id=payload.invoice_id,
            payment_method=payload.payment_method,
            invoice_status=payload.invoice_status,
            pay_load=payload.pay_load,
            reference_number=payload.reference_number,
        ),
    )


@router.post("/hash", response_model=DomainHashResponse)
async def domain_hash(
    request: Request,
    current_user: AuthUser = Depends(get_current_user),
):
    """Domain hash the embedded checkout widget authenticates with."""
    settings = get_settings()
    if not settings.FAWATERAK_API_KEY or not settings.FAWATERAK_PROVIDER_KEY:
        raise PaymentConfigurationError("Fawaterak configuration missing")

    domain = normalize_domain(
        request.headers.get("host") or request.headers.get("x-forwarded-host")
    )
    return DomainHashResponse(
        hash_key=compute_domain_hash(
            settings.FAWATERAK_API_KEY, settings.FAWATERAK_PROVIDER_KEY, domain
        ),
        domain=domain,
    )


@router.get("/methods")
async def payment_methods(
    request: Request,
    client: FawaterakClient = Depends(get_fawaterak_client),
) -> Any:
    """Payment methods enabled on the merchant account."""
    try:
        gateway_response = await client.get_payment_methods()
    except FawaterakError as exc:
        logger.error("Fetching payment methods failed: %s (%s)", exc.message, exc.status_code)
        raise PaymentGatewayError(
            "Failed to fetch payment methods", status_code=exc.status_code
        )

    if _is_plugin_proxy(request):
        return JSONResponse(content=gateway_response)
    return PaymentMethodsResponse(methods=_format_methods(gateway_response)).model_dump(
        by_alias=True
    )


@router.get("/payments/{payment_id}", response_model=PaymentStatusResponse)
async def get_payment_status(
    payment_id: str,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Status of one of the caller's payments, for the redirect status pages."""
    return await get_owned_payment(db, payment_id, current_user.user_id)
