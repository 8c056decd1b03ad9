"""Payment errors.

Each is an ``HTTPException`` so it propagates from the service layer through
the routers unchanged and renders via the shared exception handlers.
"""

from typing import Any, Optional

from fastapi import HTTPException, status


class PaymentValidationError(HTTPException):
    def __init__(self, detail: str = "Invalid request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidAmount(PaymentValidationError):
    def __init__(self, detail: str = "Invalid amount"):
        super().__init__(detail=detail)


class PaymentForbidden(HTTPException):
    def __init__(self, detail: str = "Payment belongs to another user"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class PaymentNotFound(HTTPException):
    def __init__(self, detail: str = "Payment not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class PaymentNotSettleable(HTTPException):
    """The payment reached a terminal state other than PAID (CANCELLED)."""

    def __init__(self, detail: str = "Payment was cancelled and cannot be settled"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidSignature(HTTPException):
    def __init__(self, detail: str = "Invalid hash key"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class PaymentGatewayError(HTTPException):
    """A Fawaterak call failed; carries the upstream status when known."""

    def __init__(
        self,
        detail: Any = "Fawaterak request failed",
        status_code: Optional[int] = None,
    ):
        if status_code is None or status_code < 400:
            status_code = status.HTTP_502_BAD_GATEWAY
        super().__init__(status_code=status_code, detail=detail)


class InvoiceCreationFailed(PaymentGatewayError):
    def __init__(
        self,
        detail: Any = "Failed to create invoice",
        status_code: Optional[int] = None,
    ):
        super().__init__(detail=detail, status_code=status_code)


class PaymentConfigurationError(HTTPException):
    def __init__(self, detail: str = "Fawaterak API key not configured"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )
