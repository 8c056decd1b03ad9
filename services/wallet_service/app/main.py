"""FastAPI application for the Wallet Service."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_observability_middleware
from services.wallet_service.routers import balance_router


def create_app() -> FastAPI:
    """Create and configure the Wallet Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="Tutoring Wallet Service",
        version="0.1.0",
        description="User balance and balance-ledger reads.",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_observability_middleware(app)
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "wallet"}

    app.include_router(balance_router)

    return app


app = create_app()
