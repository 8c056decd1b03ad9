"""Wallet Service models package.

Re-exports every model and enum so that
``from services.wallet_service.models import User`` works, and so importing
the package registers all tables on ``Base.metadata``.
"""

from services.wallet_service.models.enums import (  # noqa: F401
    TransactionType,
    enum_values,
)
from services.wallet_service.models.transaction import BalanceTransaction  # noqa: F401
from services.wallet_service.models.user import User  # noqa: F401

__all__ = [
    "BalanceTransaction",
    "TransactionType",
    "User",
    "enum_values",
]
