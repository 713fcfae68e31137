"""
SQLAlchemy implementation of the InvestmentStore.

Same locking contract as the account store: find_by_id locks, update()
reuses the instance already in the session.
"""

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.investment import Investment


class SQLAlchemyInvestmentRepository:

    async def find_by_id(
        self, session: AsyncSession, investment_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Investment | None:
        result = await session.execute(
            select(Investment)
            .where(Investment.id == investment_id)
            .where(Investment.owner_id == owner_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def update(
        self,
        session: AsyncSession,
        investment_id: uuid.UUID,
        owner_id: uuid.UUID,
        values: dict[str, Any],
    ) -> Investment | None:
        """Write valuation fields. A "performance" dict goes through the model property."""
        investment = await session.get(Investment, investment_id)
        if investment is None or investment.owner_id != owner_id:
            return None

        for field, value in values.items():
            setattr(investment, field, value)
        await session.flush()
        return investment
