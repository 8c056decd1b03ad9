"""Wallet service routers."""

from services.wallet_service.routers.balance import router as balance_router

__all__ = [
    "balance_router",
]
