"""
Credit cards router.

  POST /credit-card       — Register a card (balance starts at zero)
  GET  /credit-card       — List own cards
  GET  /credit-card/{id}  — Get one card with its available credit

Card balances move only through expense transactions that name the card.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.credit_card import CreditCardCreateRequest, CreditCardResponse
from app.services import credit_card_service

router = APIRouter()


@router.post(
    "",
    response_model=CreditCardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a credit card",
)
async def create_credit_card(
    request: CreditCardCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await credit_card_service.create_credit_card(
        db=db,
        owner_id=user.id,
        name=request.name,
        credit_limit_cents=request.credit_limit_cents,
        last_four=request.last_four,
    )


@router.get(
    "",
    response_model=list[CreditCardResponse],
    summary="List your credit cards",
)
async def list_credit_cards(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await credit_card_service.get_credit_cards(db, user.id)


@router.get(
    "/{credit_card_id}",
    response_model=CreditCardResponse,
    summary="Get credit card details",
)
async def get_credit_card(
    credit_card_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Returns 404 if the card doesn't exist or belongs to someone else."""
    return await credit_card_service.get_credit_card(db, credit_card_id, user.id)
