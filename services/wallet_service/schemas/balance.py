"""Balance and ledger response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from services.wallet_service.models.enums import TransactionType


class BalanceResponse(BaseModel):
    balance: float


class BalanceTransactionResponse(BaseModel):
    id: uuid.UUID
    user_id: str
    amount: float
    transaction_type: TransactionType
    description: str
    created_at: datetime

    model_config = ConfigDict(
        from_attributes=True, alias_generator=to_camel, populate_by_name=True
    )


class TransactionListResponse(BaseModel):
    transactions: list[BalanceTransactionResponse]
    total: int
    skip: int
    limit: int
