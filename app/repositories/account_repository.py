"""
SQLAlchemy implementation of the AccountStore.

Rows are read with SELECT ... FOR UPDATE: the transaction service reads a
balance and writes it back inside the same unit of work, and the row lock
makes concurrent units touching the same account wait for each other
instead of overwriting one another's balance. with_for_update() is a no-op
on SQLite, whose database-level write lock serializes writers anyway.

update() expects the caller to have locked the row with find_by_id earlier
in the unit. It takes the instance from the session's identity map rather
than selecting (and locking) it a second time.
"""

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account


class SQLAlchemyAccountRepository:

    async def find_by_id(
        self, session: AsyncSession, account_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Account | None:
        result = await session.execute(
            select(Account)
            .where(Account.id == account_id)
            .where(Account.owner_id == owner_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def update(
        self,
        session: AsyncSession,
        account_id: uuid.UUID,
        owner_id: uuid.UUID,
        values: dict[str, Any],
    ) -> Account | None:
        account = await session.get(Account, account_id)
        if account is None or account.owner_id != owner_id:
            return None

        for field, value in values.items():
            setattr(account, field, value)
        await session.flush()
        return account
