"""Payments Service models package.

Importing this package also registers the wallet tables the payments table
references, so ``Base.metadata`` is complete for ``create_all``.
"""

from services.payments_service.models.core import Payment  # noqa: F401
from services.payments_service.models.enums import (  # noqa: F401
    PaymentStatus,
    SettlementSource,
    enum_values,
)
from services.wallet_service import models as _wallet_models  # noqa: F401

__all__ = [
    "Payment",
    "PaymentStatus",
    "SettlementSource",
    "enum_values",
]
