"""SQLAlchemy implementation of the CreditCardStore."""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.credit_card import CreditCard


class SQLAlchemyCreditCardRepository:

    async def find_by_id(
        self, session: AsyncSession, credit_card_id: uuid.UUID, owner_id: uuid.UUID
    ) -> CreditCard | None:
        result = await session.execute(
            select(CreditCard)
            .where(CreditCard.id == credit_card_id)
            .where(CreditCard.owner_id == owner_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def update_balance(
        self,
        session: AsyncSession,
        credit_card_id: uuid.UUID,
        owner_id: uuid.UUID,
        amount_cents: int,
    ) -> CreditCard | None:
        """
        Add amount_cents to the card's charged balance.

        A negative amount reverses an earlier charge. The card is expected
        to be locked by find_by_id earlier in the unit, so it is taken from
        the session rather than selected again. Returns None when the card
        does not exist for this owner.
        """
        card = await session.get(CreditCard, credit_card_id)
        if card is None or card.owner_id != owner_id:
            return None

        card.current_balance_cents += amount_cents
        await session.flush()
        return card
