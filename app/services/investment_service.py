"""
Investment service — registering and reading the owner's investments.

A new investment is valued at its initial value, so its performance starts
at zero. From then on, only investment transactions move current_value.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvestmentNotFoundError
from app.models.investment import Investment
from app.services.reconciliation import compute_performance


async def create_investment(
    db: AsyncSession,
    owner_id: uuid.UUID,
    name: str,
    investment_type: str,
    initial_value_cents: int,
) -> Investment:
    investment = Investment(
        owner_id=owner_id,
        name=name,
        type=investment_type,
        initial_value_cents=initial_value_cents,
        current_value_cents=initial_value_cents,
    )
    investment.performance = compute_performance(initial_value_cents, initial_value_cents)
    db.add(investment)
    await db.flush()
    return investment


async def get_investments(
    db: AsyncSession,
    owner_id: uuid.UUID,
) -> list[Investment]:
    result = await db.execute(
        select(Investment)
        .where(Investment.owner_id == owner_id)
        .order_by(Investment.created_at.asc())
    )
    return list(result.scalars().all())


async def get_investment(
    db: AsyncSession,
    investment_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> Investment:
    """
    Raises:
        InvestmentNotFoundError: If the investment doesn't exist for this owner.
    """
    result = await db.execute(
        select(Investment)
        .where(Investment.id == investment_id)
        .where(Investment.owner_id == owner_id)
    )
    investment = result.scalar_one_or_none()

    if investment is None:
        raise InvestmentNotFoundError(investment_id)

    return investment
