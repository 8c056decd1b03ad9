"""
Fawaterak API client for invoice creation and payment-method discovery.

Provides async methods for:
- Creating an invoice link (or an init-pay invoice) for a checkout
- Listing the payment methods enabled on the merchant account
"""

import logging
from typing import Optional

import httpx
from libs.common.config import get_settings
from services.payments_service.errors import PaymentConfigurationError

logger = logging.getLogger(__name__)

CREATE_INVOICE_LINK = "/createInvoiceLink"
INVOICE_INIT_PAY = "/invoiceInitPay"
PAYMENT_METHODS = "/getPaymentmethods"


class FawaterakError(Exception):
    """Base exception for Fawaterak API errors."""

    def __init__(
        self, message: str, status_code: int = None, response_data: dict = None
    ):
        self.message = message
        self.status_code = status_code
        self.response_data = response_data or {}
        super().__init__(message)


class FawaterakClient:
    """Async client for the Fawaterak v2 API."""

    def __init__(
        self,
        api_key: str = None,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.FAWATERAK_API_KEY
        if not self.api_key:
            raise PaymentConfigurationError()
        self.base_url = (base_url or settings.FAWATERAK_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.FAWATERAK_TIMEOUT_SECONDS
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: dict = None,
    ) -> dict:
        """Make an async request to the Fawaterak API."""
        url = f"{self.base_url}{endpoint}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=self._headers,
                    json=json_data,
                )
        except httpx.TimeoutException as exc:
            logger.error("Fawaterak %s %s timed out: %s", method, endpoint, exc)
            raise FawaterakError("Fawaterak request timed out", status_code=504)
        except httpx.HTTPError as exc:
            logger.error("Fawaterak %s %s transport error: %s", method, endpoint, exc)
            raise FawaterakError("Fawaterak request failed", status_code=502)

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text}

        if not response.is_success:
            logger.error(
                "Fawaterak API error: %s %s -> %d - %s",
                method,
                endpoint,
                response.status_code,
                data,
            )
            message = data.get("message") if isinstance(data, dict) else None
            raise FawaterakError(
                message=message or "Fawaterak request failed",
                status_code=response.status_code,
                response_data=data if isinstance(data, dict) else {"data": data},
            )

        if not isinstance(data, dict):
            raise FawaterakError(
                message="Unexpected Fawaterak response shape",
                status_code=502,
                response_data={"data": data},
            )

        return data

    # =========================================================================
    # Invoices
    # =========================================================================

    async def create_invoice(
        self, invoice_data: dict, endpoint: str = CREATE_INVOICE_LINK
    ) -> dict:
        """
        Create a remote invoice and return the gateway JSON untouched.

        The response shape varies between endpoints and API revisions; use
        ``extract_invoice_link`` to normalise it.
        """
        return await self._request("POST", endpoint, json_data=invoice_data)

    # =========================================================================
    # Payment methods
    # =========================================================================

    async def get_payment_methods(self) -> dict:
        """Payment methods enabled for the merchant (raw gateway JSON)."""
        return await self._request("GET", PAYMENT_METHODS)


def get_fawaterak_client() -> FawaterakClient:
    """FastAPI dependency returning a configured client."""
    return FawaterakClient()
