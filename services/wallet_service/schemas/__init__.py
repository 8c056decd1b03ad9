"""Wallet Service schemas package."""

from services.wallet_service.schemas.balance import (  # noqa: F401
    BalanceResponse,
    BalanceTransactionResponse,
    TransactionListResponse,
)

__all__ = [
    "BalanceResponse",
    "BalanceTransactionResponse",
    "TransactionListResponse",
]
