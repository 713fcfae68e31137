"""
Credit card service — registering and reading the owner's cards.

A new card starts with nothing charged. Its balance then moves only
through expense transactions that reference it (see
app/services/transaction_service.py).
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import CreditCardNotFoundError
from app.models.credit_card import CreditCard


async def create_credit_card(
    db: AsyncSession,
    owner_id: uuid.UUID,
    name: str,
    credit_limit_cents: int,
    last_four: str | None = None,
) -> CreditCard:
    card = CreditCard(
        owner_id=owner_id,
        name=name,
        last_four=last_four,
        credit_limit_cents=credit_limit_cents,
        current_balance_cents=0,
    )
    db.add(card)
    await db.flush()
    return card


async def get_credit_cards(
    db: AsyncSession,
    owner_id: uuid.UUID,
) -> list[CreditCard]:
    result = await db.execute(
        select(CreditCard)
        .where(CreditCard.owner_id == owner_id)
        .order_by(CreditCard.created_at.asc())
    )
    return list(result.scalars().all())


async def get_credit_card(
    db: AsyncSession,
    credit_card_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> CreditCard:
    """
    Raises:
        CreditCardNotFoundError: If the card doesn't exist for this owner.
    """
    result = await db.execute(
        select(CreditCard)
        .where(CreditCard.id == credit_card_id)
        .where(CreditCard.owner_id == owner_id)
    )
    card = result.scalar_one_or_none()

    if card is None:
        raise CreditCardNotFoundError(credit_card_id)

    return card
