import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from services.payments_service.models import PaymentStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PreparePaymentRequest(CamelModel):
    # Left loose so bad amounts surface as InvalidAmount rather than a schema error
    amount: Any = None
    payment_method: Optional[str] = None


class PreparePaymentResponse(CamelModel):
    success: bool = True
    payment_id: uuid.UUID


class ConfirmPaymentRequest(CamelModel):
    payment_id: Optional[str] = None


class ConfirmPaymentResponse(BaseModel):
    success: bool = True
    message: str
    status: PaymentStatus
    balance: float


class PaidWebhookRequest(BaseModel):
    """Body Fawaterak posts to the paid webhook; field names are the gateway's.

    Echoed fields stay untyped so an odd shape reaches the hash and status
    checks instead of failing request validation.
    """

    hash_key: Any = Field(None, alias="hashKey")
    invoice_key: Any = None
    invoice_id: Any = None
    payment_method: Any = None
    invoice_status: Any = None
    pay_load: Any = None
    reference_number: Any = Field(None, alias="referenceNumber")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class WebhookResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    payment_id: Optional[str] = None
    new_balance: Optional[float] = None


class DomainHashResponse(CamelModel):
    hash_key: str
    domain: str


class PaymentMethodItem(CamelModel):
    id: str
    original_id: Any = None
    name: str
    icon: Optional[str] = None
    commission: Any = 0


class PaymentMethodsResponse(BaseModel):
    methods: list[PaymentMethodItem]


class PaymentStatusResponse(BaseModel):
    id: uuid.UUID
    amount: float
    status: PaymentStatus
    payment_method: Optional[str] = None
    external_invoice_url: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )
