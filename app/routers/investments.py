"""
Investments router.

  POST /investments                         — Register an investment
  GET  /investments                         — List own investments
  GET  /investments/{id}                    — Get one investment with performance
  GET  /investments/{id}/transactions       — Transactions that funded it
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_transaction_service
from app.models.user import User
from app.schemas.investment import InvestmentCreateRequest, InvestmentResponse
from app.schemas.transaction import TransactionResponse
from app.services import investment_service
from app.services.transaction_service import TransactionService

router = APIRouter()


@router.post(
    "",
    response_model=InvestmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an investment",
)
async def create_investment(
    request: InvestmentCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    The current value starts at the initial value. Investment transactions
    that reference this investment grow it from there.
    """
    return await investment_service.create_investment(
        db=db,
        owner_id=user.id,
        name=request.name,
        investment_type=request.type,
        initial_value_cents=request.initial_value_cents,
    )


@router.get(
    "",
    response_model=list[InvestmentResponse],
    summary="List your investments",
)
async def list_investments(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await investment_service.get_investments(db, user.id)


@router.get(
    "/{investment_id}",
    response_model=InvestmentResponse,
    summary="Get investment details",
)
async def get_investment(
    investment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await investment_service.get_investment(db, investment_id, user.id)


@router.get(
    "/{investment_id}/transactions",
    response_model=list[TransactionResponse],
    summary="List transactions that funded an investment",
)
async def list_investment_transactions(
    investment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.get_transactions_by_investment(user.id, investment_id)
