"""Enum definitions for payments service models."""

import enum


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class PaymentStatus(str, enum.Enum):
    """PENDING -> PAID and PENDING -> CANCELLED are the only transitions."""

    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"


class SettlementSource(str, enum.Enum):
    """Which reconciliation path moved a payment to PAID."""

    WEBHOOK = "webhook"
    CONFIRM = "confirm"
