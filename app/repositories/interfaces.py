"""
Store contracts consumed by the transaction service.

The service only depends on these capability sets; the SQLAlchemy classes in
this package implement them and are injected by app.dependencies. Tests or
other backends can provide their own implementations.

Every method takes the unit of work (an AsyncSession) first: a relational
transaction only sees its own uncommitted writes through its own session,
so reads that feed a later write must go through the same unit.

Lookups are always scoped by owner_id. A record owned by another user is
returned as None, exactly like a missing one.
"""

import uuid
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.account import Account
from app.models.category import Category
from app.models.credit_card import CreditCard
from app.models.investment import Investment
from app.models.transaction import Transaction
from app.schemas.transaction import TransactionFilters


class TransactionStore(Protocol):
    async def create(self, session: AsyncSession, data: dict[str, Any]) -> Transaction: ...

    async def find_by_id(
        self, session: AsyncSession, transaction_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Transaction | None: ...

    async def update(
        self,
        session: AsyncSession,
        transaction_id: uuid.UUID,
        owner_id: uuid.UUID,
        patch: dict[str, Any],
    ) -> Transaction | None: ...

    async def delete(
        self, session: AsyncSession, transaction_id: uuid.UUID, owner_id: uuid.UUID
    ) -> bool: ...

    async def find_by_user(
        self, session: AsyncSession, owner_id: uuid.UUID, filters: TransactionFilters
    ) -> list[Transaction]: ...

    async def count_by_user(
        self, session: AsyncSession, owner_id: uuid.UUID, filters: TransactionFilters
    ) -> int: ...

    async def find_by_date_range(
        self, session: AsyncSession, owner_id: uuid.UUID, start: datetime, end: datetime
    ) -> list[Transaction]: ...

    async def find_by_investment(
        self, session: AsyncSession, owner_id: uuid.UUID, investment_id: uuid.UUID
    ) -> list[Transaction]: ...


class AccountStore(Protocol):
    async def find_by_id(
        self, session: AsyncSession, account_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Account | None: ...

    async def update(
        self,
        session: AsyncSession,
        account_id: uuid.UUID,
        owner_id: uuid.UUID,
        values: dict[str, Any],
    ) -> Account | None: ...


class InvestmentStore(Protocol):
    async def find_by_id(
        self, session: AsyncSession, investment_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Investment | None: ...

    async def update(
        self,
        session: AsyncSession,
        investment_id: uuid.UUID,
        owner_id: uuid.UUID,
        values: dict[str, Any],
    ) -> Investment | None: ...


class CreditCardStore(Protocol):
    async def find_by_id(
        self, session: AsyncSession, credit_card_id: uuid.UUID, owner_id: uuid.UUID
    ) -> CreditCard | None: ...

    async def update_balance(
        self,
        session: AsyncSession,
        credit_card_id: uuid.UUID,
        owner_id: uuid.UUID,
        amount_cents: int,
    ) -> CreditCard | None: ...


class CategoryStore(Protocol):
    async def find_by_id(
        self, session: AsyncSession, category_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Category | None: ...
