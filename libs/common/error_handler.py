"""Global exception handlers producing consistent JSON error bodies."""

import re

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from libs.common.logging import get_logger

logger = get_logger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def error_code_for(exc: HTTPException) -> str:
    """Derive a stable machine-readable code from the exception class.

    ``PaymentNotFound`` -> ``PAYMENT_NOT_FOUND``. Plain ``HTTPException``
    falls back to ``HTTP_<status>``.
    """
    explicit = getattr(exc, "code", None)
    if explicit:
        return explicit
    if type(exc) is HTTPException:
        return f"HTTP_{exc.status_code}"
    return _CAMEL_BOUNDARY.sub("_", type(exc).__name__).upper()


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    content = exc.detail if isinstance(exc.detail, dict) else {"detail": exc.detail}
    content.setdefault("code", error_code_for(exc))
    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": "Invalid request body",
            "code": "VALIDATION_ERROR",
            "errors": [
                {"loc": list(err.get("loc", [])), "msg": err.get("msg")}
                for err in exc.errors()
            ],
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal Error", "code": "INTERNAL_SERVER_ERROR"},
    )


def add_exception_handlers(app: FastAPI) -> None:
    """Install the shared handlers on an app."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
