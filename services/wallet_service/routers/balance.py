"""User-facing balance endpoints."""

from fastapi import APIRouter, Depends, Query
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.wallet_service.schemas import BalanceResponse, TransactionListResponse
from services.wallet_service.services.ledger import get_balance, list_transactions
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/api", tags=["balance"])


@router.get("/user/balance", response_model=BalanceResponse)
async def get_my_balance(
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Current balance of the signed-in user."""
    return BalanceResponse(balance=await get_balance(db, current_user.user_id))


@router.get("/balance/transactions", response_model=TransactionListResponse)
async def list_my_transactions(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List my balance transactions (newest first, paginated)."""
    transactions, total = await list_transactions(
        db, current_user.user_id, skip=skip, limit=limit
    )
    return TransactionListResponse(
        transactions=transactions, total=total, skip=skip, limit=limit
    )
