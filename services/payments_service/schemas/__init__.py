"""Payments Service schemas package."""

from services.payments_service.schemas.fawaterak import (
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

__all__ = [
    "ConfirmPaymentRequest",
    "ConfirmPaymentResponse",
    "DomainHashResponse",
    "PaidWebhookRequest",
    "PaymentMethodItem",
    "PaymentMethodsResponse",
    "PaymentStatusResponse",
    "PreparePaymentRequest",
    "PreparePaymentResponse",
    "WebhookResponse",
]
