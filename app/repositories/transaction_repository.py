"""
SQLAlchemy implementation of the TransactionStore.

Every transaction returned from here is "fully populated": category,
credit card, investment and attachments are eagerly loaded with
selectinload, so callers (and response serialization) never trigger a lazy
load, which an AsyncSession cannot do.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.transaction import Transaction, TransactionAttachment
from app.schemas.transaction import TransactionFilters


def _populated(query: Select) -> Select:
    return query.options(
        selectinload(Transaction.category),
        selectinload(Transaction.credit_card),
        selectinload(Transaction.investment),
        selectinload(Transaction.attachments),
    )


def _apply_filters(query: Select, owner_id: uuid.UUID, filters: TransactionFilters) -> Select:
    query = query.where(Transaction.owner_id == owner_id)
    if filters.type is not None:
        query = query.where(Transaction.type == filters.type)
    if filters.account_id is not None:
        query = query.where(Transaction.account_id == filters.account_id)
    if filters.category_id is not None:
        query = query.where(Transaction.category_id == filters.category_id)
    if filters.investment_id is not None:
        query = query.where(Transaction.investment_id == filters.investment_id)
    if filters.start_date is not None:
        query = query.where(Transaction.date >= filters.start_date)
    if filters.end_date is not None:
        query = query.where(Transaction.date <= filters.end_date)
    return query


class SQLAlchemyTransactionRepository:

    async def create(self, session: AsyncSession, data: dict[str, Any]) -> Transaction:
        values = dict(data)
        attachments = values.pop("attachments", None) or []

        txn = Transaction(**values)
        txn.attachments = [TransactionAttachment(**attachment) for attachment in attachments]
        session.add(txn)
        await session.flush()

        return await self._reload(session, txn.id)

    async def find_by_id(
        self, session: AsyncSession, transaction_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Transaction | None:
        result = await session.execute(
            _populated(select(Transaction))
            .where(Transaction.id == transaction_id)
            .where(Transaction.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def update(
        self,
        session: AsyncSession,
        transaction_id: uuid.UUID,
        owner_id: uuid.UUID,
        patch: dict[str, Any],
    ) -> Transaction | None:
        """
        Apply a partial update. An "attachments" entry replaces the whole
        list; attachments left out are deleted (delete-orphan cascade).
        """
        txn = await self.find_by_id(session, transaction_id, owner_id)
        if txn is None:
            return None

        for field, value in patch.items():
            setattr(txn, field, value)
        await session.flush()

        return await self._reload(session, txn.id)

    async def delete(
        self, session: AsyncSession, transaction_id: uuid.UUID, owner_id: uuid.UUID
    ) -> bool:
        txn = await self.find_by_id(session, transaction_id, owner_id)
        if txn is None:
            return False

        await session.delete(txn)
        await session.flush()
        return True

    async def find_by_user(
        self, session: AsyncSession, owner_id: uuid.UUID, filters: TransactionFilters
    ) -> list[Transaction]:
        query = (
            _apply_filters(_populated(select(Transaction)), owner_id, filters)
            .order_by(Transaction.date.desc(), Transaction.created_at.desc())
            .limit(filters.limit)
            .offset((filters.page - 1) * filters.limit)
        )
        result = await session.execute(query)
        return list(result.scalars().all())

    async def count_by_user(
        self, session: AsyncSession, owner_id: uuid.UUID, filters: TransactionFilters
    ) -> int:
        query = _apply_filters(
            select(func.count()).select_from(Transaction), owner_id, filters
        )
        result = await session.execute(query)
        return result.scalar_one()

    async def find_by_date_range(
        self, session: AsyncSession, owner_id: uuid.UUID, start: datetime, end: datetime
    ) -> list[Transaction]:
        result = await session.execute(
            _populated(select(Transaction))
            .where(Transaction.owner_id == owner_id)
            .where(Transaction.date >= start)
            .where(Transaction.date <= end)
            .order_by(Transaction.date.asc())
        )
        return list(result.scalars().all())

    async def find_by_investment(
        self, session: AsyncSession, owner_id: uuid.UUID, investment_id: uuid.UUID
    ) -> list[Transaction]:
        result = await session.execute(
            _populated(select(Transaction))
            .where(Transaction.owner_id == owner_id)
            .where(Transaction.investment_id == investment_id)
            .order_by(Transaction.date.desc())
        )
        return list(result.scalars().all())

    async def _reload(self, session: AsyncSession, transaction_id: uuid.UUID) -> Transaction:
        # populate_existing refreshes relationships on the identity-mapped
        # instance after FK columns changed.
        result = await session.execute(
            _populated(select(Transaction))
            .where(Transaction.id == transaction_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
