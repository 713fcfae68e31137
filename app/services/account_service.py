"""
Account service — business logic for account operations.

This module handles:
  - Account creation (with an opening balance)
  - Account retrieval (single or list, scoped to the owner)
  - Summary across the owner's accounts
  - Balance verification (stored vs. computed from transactions)

Ownership enforcement:
  All query functions take an `owner_id`, always the authenticated user's
  id. An account owned by someone else is reported as not found.

Balances are never written here after creation; only the transaction
service moves them.
"""

import uuid

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import AccountNotFoundError
from app.models.account import Account
from app.models.transaction import Transaction, TransactionType


async def create_account(
    db: AsyncSession,
    owner_id: uuid.UUID,
    name: str,
    account_type: str = "checking",
    initial_balance_cents: int = 0,
    currency: str = "USD",
) -> Account:
    """Create a new account whose running balance starts at the opening balance."""
    account = Account(
        owner_id=owner_id,
        name=name,
        account_type=account_type,
        initial_balance_cents=initial_balance_cents,
        balance_cents=initial_balance_cents,
        currency=currency.upper(),
    )
    db.add(account)
    await db.flush()
    return account


async def get_accounts(
    db: AsyncSession,
    owner_id: uuid.UUID,
) -> list[Account]:
    """List all accounts belonging to the owner, oldest first."""
    result = await db.execute(
        select(Account)
        .where(Account.owner_id == owner_id)
        .order_by(Account.created_at.asc())
    )
    return list(result.scalars().all())


async def get_account(
    db: AsyncSession,
    account_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> Account:
    """
    Get a single account, verifying ownership.

    Raises:
        AccountNotFoundError: If the account doesn't exist for this owner.
    """
    result = await db.execute(
        select(Account)
        .where(Account.id == account_id)
        .where(Account.owner_id == owner_id)
    )
    account = result.scalar_one_or_none()

    if account is None:
        raise AccountNotFoundError(account_id)

    return account


async def get_summary(
    db: AsyncSession,
    owner_id: uuid.UUID,
) -> dict:
    """Total balance and number of accounts for the owner."""
    result = await db.execute(
        select(
            func.coalesce(func.sum(Account.balance_cents), 0),
            func.count(Account.id),
        ).where(Account.owner_id == owner_id)
    )
    total_balance, count = result.one()
    return {"total_balance_cents": total_balance, "account_count": count}


async def get_balance(
    db: AsyncSession,
    account_id: uuid.UUID,
    owner_id: uuid.UUID,
) -> dict:
    """
    Get the account balance — both stored and computed from transactions.

    Returns:
        Dict with balance_cents, computed_balance_cents, match, currency.
    """
    account = await get_account(db, account_id, owner_id)
    computed = account.initial_balance_cents + await _net_transaction_effect(db, account_id)

    return {
        "account_id": account.id,
        "balance_cents": account.balance_cents,
        "computed_balance_cents": computed,
        "match": account.balance_cents == computed,
        "currency": account.currency,
    }


async def _net_transaction_effect(
    db: AsyncSession,
    account_id: uuid.UUID,
) -> int:
    """
    Sum of what the account's transactions did to it.

    Income adds; expenses and investments subtract. Expenses charged to a
    credit card are excluded: they hit the card, not the account.
    """
    charged_to_card = and_(
        Transaction.type == TransactionType.EXPENSE.value,
        Transaction.credit_card_id.is_not(None),
    )
    signed_amount = case(
        (Transaction.type == TransactionType.INCOME.value, Transaction.amount_cents),
        (charged_to_card, 0),
        (
            or_(
                Transaction.type == TransactionType.EXPENSE.value,
                Transaction.type == TransactionType.INVESTMENT.value,
            ),
            -Transaction.amount_cents,
        ),
        else_=0,
    )
    result = await db.execute(
        select(func.coalesce(func.sum(signed_amount), 0))
        .where(Transaction.account_id == account_id)
    )
    return result.scalar()
