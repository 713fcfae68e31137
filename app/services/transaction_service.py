"""
Transaction service — the ledger mutation engine.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. It handles:
  - Creating, updating and deleting transactions together with their
    effect on account balances, credit-card balances and investment values
  - Removing attachments from a transaction
  - Listing transactions and building period statistics

Atomicity:
  Every mutation runs inside one unit of work (app/unit_of_work.py). The
  transaction record and every balance it touches are written through the
  same session and committed together; any error rolls all of them back.
  This keeps

      account.balance = initial + income - expenses - investments
      investment.current_value = initial + investments funding it

  true after any sequence of operations. The effect rules themselves live
  in app/services/reconciliation.py.

Ownership:
  Every reference a create or update writes (account, category, credit
  card, investment) is looked up with the caller's owner_id before anything
  is written. Someone else's record fails exactly like a missing one, so a
  transaction can never point at another user's data.

Update ordering:
  An update first reverses the original effect on the original
  account/card/investment, then applies the new effect on the target.
  When the target is the same row, both steps hit the same identity-mapped
  object, so the net change is exactly (new - old).

Deadlock prevention:
  Balance-bearing rows are read with SELECT ... FOR UPDATE. An update can
  touch two accounts (or two investments), so every row a unit needs is
  locked up front in one fixed order: accounts, then credit cards, then
  investments, each kind sorted by UUID. Without it, moving a transaction
  A->B while another unit moves one B->A would lock A then B in the first
  unit and B then A in the second, and each would wait on the other.

SQLite note:
  with_for_update() is a no-op on SQLite, whose database-level write lock
  serializes writers. The lock ordering matters on PostgreSQL.

Collaborators are passed to the constructor; app.dependencies wires the
SQLAlchemy implementations per request.
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    AccountNotFoundError,
    AttachmentNotFoundError,
    CategoryNotFoundError,
    CreditCardNotFoundError,
    InvestmentNotFoundError,
    TransactionNotFoundError,
    TransactionUpdateError,
)
from app.models.transaction import Transaction
from app.repositories.interfaces import (
    AccountStore,
    CategoryStore,
    CreditCardStore,
    InvestmentStore,
    TransactionStore,
)
from app.schemas.transaction import (
    TransactionCreateRequest,
    TransactionFilters,
    TransactionUpdateRequest,
)
from app.services.reconciliation import (
    LedgerEntry,
    account_fields_changed,
    compute_performance,
    investment_fields_changed,
)
from app.services.statistics import period_start, summarize_transactions
from app.unit_of_work import AtomicUnitRunner

logger = structlog.get_logger(__name__)

# Rows locked by a unit, keyed by kind then id. A missing or foreign row maps to None.
LockedRows = dict[str, dict[uuid.UUID, Any]]


class TransactionService:

    def __init__(
        self,
        runner: AtomicUnitRunner,
        transactions: TransactionStore,
        accounts: AccountStore,
        investments: InvestmentStore,
        credit_cards: CreditCardStore,
        categories: CategoryStore,
        top_categories: int = 5,
    ):
        self.runner = runner
        self.transactions = transactions
        self.accounts = accounts
        self.investments = investments
        self.credit_cards = credit_cards
        self.categories = categories
        self.top_categories = top_categories

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_transaction(
        self, owner_id: uuid.UUID, request: TransactionCreateRequest
    ) -> Transaction:
        """
        Record a transaction and apply its effect.

        Steps (one unit of work):
          1. Lock the account, card and investment it references and check
             that each of them, and the category, belongs to the owner
          2. Persist the transaction with its attachments
          3. If it funds an investment: grow the investment's value
          4. Charge the credit card, or credit/debit the account

        Raises:
            AccountNotFoundError: The account doesn't exist for this owner.
            CategoryNotFoundError: The category doesn't exist for this owner.
            CreditCardNotFoundError: The card doesn't exist for this owner.
            InvestmentNotFoundError: The investment doesn't exist for this owner.
        """
        data = request.model_dump()
        data["owner_id"] = owner_id
        entry = LedgerEntry.from_values(data)

        async def unit(session: AsyncSession) -> Transaction:
            locked = await self._lock_rows(session, owner_id, [entry])
            await self._check_references(session, owner_id, data, locked)

            txn = await self.transactions.create(session, data)
            await self._apply_investment_effect(session, owner_id, entry, 1, locked)
            await self._apply_account_effect(session, owner_id, entry, 1, locked)
            return txn

        txn = await self.runner.run(unit)
        logger.info(
            "transaction_created",
            transaction_id=str(txn.id),
            owner_id=str(owner_id),
            type=txn.type,
            amount_cents=txn.amount_cents,
        )
        return txn

    async def update_transaction(
        self,
        transaction_id: uuid.UUID,
        owner_id: uuid.UUID,
        request: TransactionUpdateRequest,
    ) -> Transaction:
        """
        Apply a partial update and move balances accordingly.

        Only fields that were sent are changed. References sent in the
        update must belong to the owner. Balances are touched only when a
        field that decides the effect changed:
          - amount, type, account or credit card -> account/card effect
          - amount, type or investment (when either side is an
            investment transaction)            -> investment effect
        Editing only the date, description or category writes nothing
        but the transaction record.

        Raises:
            TransactionNotFoundError: No such transaction for this owner.
            AccountNotFoundError: The original or target account is missing.
            CategoryNotFoundError: The new category is missing.
            CreditCardNotFoundError: The original or target card is missing.
            InvestmentNotFoundError: The new investment is missing.
            TransactionUpdateError: The store returned nothing for the update.
        """
        patch = request.model_dump(exclude_unset=True)

        async def unit(session: AsyncSession) -> Transaction:
            original = await self.transactions.find_by_id(session, transaction_id, owner_id)
            if original is None:
                raise TransactionNotFoundError(transaction_id)

            before = LedgerEntry.from_transaction(original)
            after = before.with_changes(patch)

            locked = await self._lock_rows(session, owner_id, [before, after])
            await self._check_references(session, owner_id, patch, locked, role="target")

            if account_fields_changed(before, after):
                await self._apply_account_effect(session, owner_id, before, -1, locked, role="original")
                await self._apply_account_effect(session, owner_id, after, 1, locked, role="target")

            if investment_fields_changed(before, after):
                await self._apply_investment_effect(session, owner_id, before, -1, locked)
                await self._apply_investment_effect(session, owner_id, after, 1, locked)

            updated = await self.transactions.update(session, transaction_id, owner_id, patch)
            if updated is None:
                raise TransactionUpdateError(transaction_id)
            return updated

        txn = await self.runner.run(unit)
        logger.info(
            "transaction_updated",
            transaction_id=str(transaction_id),
            owner_id=str(owner_id),
            fields=sorted(patch),
        )
        return txn

    async def delete_transaction(
        self, transaction_id: uuid.UUID, owner_id: uuid.UUID
    ) -> dict:
        """
        Reverse a transaction's effect and delete it.

        Returns:
            {"success": bool} as reported by the store's delete.

        Raises:
            TransactionNotFoundError: No such transaction for this owner.
            AccountNotFoundError: The transaction's account is missing.
        """

        async def unit(session: AsyncSession) -> dict:
            txn = await self.transactions.find_by_id(session, transaction_id, owner_id)
            if txn is None:
                raise TransactionNotFoundError(transaction_id)

            entry = LedgerEntry.from_transaction(txn)
            locked = await self._lock_rows(session, owner_id, [entry])
            await self._apply_investment_effect(session, owner_id, entry, -1, locked)
            await self._apply_account_effect(session, owner_id, entry, -1, locked)

            deleted = await self.transactions.delete(session, transaction_id, owner_id)
            return {"success": deleted}

        result = await self.runner.run(unit)
        logger.info(
            "transaction_deleted",
            transaction_id=str(transaction_id),
            owner_id=str(owner_id),
            success=result["success"],
        )
        return result

    async def remove_attachment(
        self,
        transaction_id: uuid.UUID,
        owner_id: uuid.UUID,
        attachment_id: uuid.UUID,
    ) -> Transaction:
        """
        Drop one attachment from a transaction.

        Raises:
            TransactionNotFoundError: No such transaction for this owner.
            AttachmentNotFoundError: The transaction has no attachments, or
                                     none with this id.
        """

        async def unit(session: AsyncSession) -> Transaction:
            txn = await self.transactions.find_by_id(session, transaction_id, owner_id)
            if txn is None:
                raise TransactionNotFoundError(transaction_id)

            if not txn.attachments:
                raise AttachmentNotFoundError(transaction_id)

            remaining = [a for a in txn.attachments if a.id != attachment_id]
            if len(remaining) == len(txn.attachments):
                raise AttachmentNotFoundError(transaction_id, attachment_id)

            updated = await self.transactions.update(
                session, transaction_id, owner_id, {"attachments": remaining}
            )
            if updated is None:
                raise TransactionUpdateError(transaction_id, action="remove attachment from")
            return updated

        txn = await self.runner.run(unit)
        logger.info(
            "attachment_removed",
            transaction_id=str(transaction_id),
            attachment_id=str(attachment_id),
        )
        return txn

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_transaction(
        self, transaction_id: uuid.UUID, owner_id: uuid.UUID
    ) -> Transaction:
        async def unit(session: AsyncSession) -> Transaction | None:
            return await self.transactions.find_by_id(session, transaction_id, owner_id)

        txn = await self.runner.run(unit)
        if txn is None:
            raise TransactionNotFoundError(transaction_id)
        return txn

    async def list_transactions(
        self, owner_id: uuid.UUID, filters: TransactionFilters
    ) -> dict:
        """
        Page through the owner's transactions, newest first.

        Returns:
            {"transactions", "total", "page", "limit", "pages"}
        """

        async def unit(session: AsyncSession) -> tuple[list[Transaction], int]:
            rows = await self.transactions.find_by_user(session, owner_id, filters)
            total = await self.transactions.count_by_user(session, owner_id, filters)
            return rows, total

        rows, total = await self.runner.run(unit)
        return {
            "transactions": rows,
            "total": total,
            "page": filters.page,
            "limit": filters.limit,
            "pages": math.ceil(total / filters.limit),
        }

    async def get_transactions_by_investment(
        self, owner_id: uuid.UUID, investment_id: uuid.UUID
    ) -> list[Transaction]:
        async def unit(session: AsyncSession) -> list[Transaction]:
            investment = await self.investments.find_by_id(session, investment_id, owner_id)
            if investment is None:
                raise InvestmentNotFoundError(investment_id)
            return await self.transactions.find_by_investment(session, owner_id, investment_id)

        return await self.runner.run(unit)

    async def get_transaction_stats(
        self,
        owner_id: uuid.UUID,
        period: str = "month",
        now: datetime | None = None,
    ) -> dict:
        """
        Summarize the owner's transactions over the last day/week/month/year.

        See app/services/statistics.py for the payload. Read-only.
        """
        end = now or datetime.now(timezone.utc)
        start = period_start(end, period)

        async def unit(session: AsyncSession) -> list[Transaction]:
            return await self.transactions.find_by_date_range(session, owner_id, start, end)

        transactions = await self.runner.run(unit)
        return summarize_transactions(
            transactions, period, start, end, top_categories=self.top_categories
        )

    # ------------------------------------------------------------------
    # Locking and reference checks
    # ------------------------------------------------------------------

    async def _lock_rows(
        self,
        session: AsyncSession,
        owner_id: uuid.UUID,
        entries: list[LedgerEntry],
    ) -> LockedRows:
        """
        Lock every account, card and investment the entries reference.

        Kinds are locked in a fixed order and ids within a kind in sorted
        order, so concurrent units always acquire shared rows in the same
        sequence.
        """
        kinds = (
            ("account", "account_id", self.accounts),
            ("credit_card", "credit_card_id", self.credit_cards),
            ("investment", "investment_id", self.investments),
        )
        locked: LockedRows = {}
        for kind, field, store in kinds:
            ids = sorted({getattr(e, field) for e in entries if getattr(e, field) is not None})
            rows = {}
            for row_id in ids:
                rows[row_id] = await store.find_by_id(session, row_id, owner_id)
            locked[kind] = rows
        return locked

    async def _check_references(
        self,
        session: AsyncSession,
        owner_id: uuid.UUID,
        values: dict[str, Any],
        locked: LockedRows,
        role: str | None = None,
    ) -> None:
        """Every reference set in values must resolve for this owner."""
        account_id = values.get("account_id")
        if account_id is not None and locked["account"].get(account_id) is None:
            raise AccountNotFoundError(account_id, role=role)

        credit_card_id = values.get("credit_card_id")
        if credit_card_id is not None and locked["credit_card"].get(credit_card_id) is None:
            raise CreditCardNotFoundError(credit_card_id)

        investment_id = values.get("investment_id")
        if investment_id is not None and locked["investment"].get(investment_id) is None:
            raise InvestmentNotFoundError(investment_id)

        category_id = values.get("category_id")
        if category_id is not None:
            if await self.categories.find_by_id(session, category_id, owner_id) is None:
                raise CategoryNotFoundError(category_id)

    # ------------------------------------------------------------------
    # Effect helpers
    # ------------------------------------------------------------------

    async def _apply_account_effect(
        self,
        session: AsyncSession,
        owner_id: uuid.UUID,
        entry: LedgerEntry,
        sign: int,
        locked: LockedRows,
        role: str | None = None,
    ) -> None:
        """Charge/refund the credit card, or credit/debit the account."""
        if entry.charges_credit_card:
            card = locked["credit_card"].get(entry.credit_card_id)
            if card is None:
                raise CreditCardNotFoundError(entry.credit_card_id)
            await self.credit_cards.update_balance(
                session, card.id, owner_id, sign * entry.amount_cents
            )
            return

        account = locked["account"].get(entry.account_id)
        if account is None:
            raise AccountNotFoundError(entry.account_id, role=role)

        await self.accounts.update(
            session,
            account.id,
            owner_id,
            {"balance_cents": account.balance_cents + sign * entry.account_delta_cents},
        )

    async def _apply_investment_effect(
        self,
        session: AsyncSession,
        owner_id: uuid.UUID,
        entry: LedgerEntry,
        sign: int,
        locked: LockedRows,
    ) -> None:
        """Grow or shrink the funded investment and recompute its performance."""
        if not entry.funds_investment:
            return

        # New references are checked up front; only an original one can be gone
        investment = locked["investment"].get(entry.investment_id)
        if investment is None:
            logger.warning(
                "investment_missing",
                investment_id=str(entry.investment_id),
                owner_id=str(owner_id),
            )
            return

        current_value = investment.current_value_cents + sign * entry.amount_cents
        await self.investments.update(
            session,
            investment.id,
            owner_id,
            {
                "current_value_cents": current_value,
                "performance": compute_performance(current_value, investment.initial_value_cents),
            },
        )
