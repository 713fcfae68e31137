"""
Balance reconciliation rules — what a transaction does to balances.

A transaction has exactly one effect shape, decided by its type and
references:

  shape         condition                           effect
  -----------   ---------------------------------   ------------------------------------
  credit card   credit_card_id set, type=expense    card balance += amount
  investment    investment_id set, type=investment  investment value += amount,
                                                    account balance -= amount
  plain         anything else                       account balance += amount (income)
                                                    account balance -= amount (expense,
                                                    investment)

Undoing a transaction applies the same rule with the sign flipped, so
create followed by delete always restores the previous balances exactly.

Everything here is pure: no database access. The transaction service reads
and writes the records.
"""

import uuid
from dataclasses import dataclass, replace
from typing import Any

from app.models.transaction import TransactionType


@dataclass(frozen=True)
class LedgerEntry:
    """The fields of a transaction that decide its effect on balances."""

    type: str
    amount_cents: int
    account_id: uuid.UUID
    credit_card_id: uuid.UUID | None = None
    investment_id: uuid.UUID | None = None

    @classmethod
    def from_transaction(cls, txn: Any) -> "LedgerEntry":
        return cls(
            type=txn.type,
            amount_cents=txn.amount_cents,
            account_id=txn.account_id,
            credit_card_id=txn.credit_card_id,
            investment_id=txn.investment_id,
        )

    @classmethod
    def from_values(cls, values: dict[str, Any]) -> "LedgerEntry":
        return cls(
            type=values["type"],
            amount_cents=values["amount_cents"],
            account_id=values["account_id"],
            credit_card_id=values.get("credit_card_id"),
            investment_id=values.get("investment_id"),
        )

    def with_changes(self, patch: dict[str, Any]) -> "LedgerEntry":
        """The entry after a partial update; keys absent from patch keep their value."""
        changes = {
            field: patch[field]
            for field in ("type", "amount_cents", "account_id", "credit_card_id", "investment_id")
            if field in patch
        }
        return replace(self, **changes)

    @property
    def charges_credit_card(self) -> bool:
        return self.credit_card_id is not None and self.type == TransactionType.EXPENSE

    @property
    def funds_investment(self) -> bool:
        return self.investment_id is not None and self.type == TransactionType.INVESTMENT

    @property
    def account_delta_cents(self) -> int:
        """Signed change this entry makes to its account's balance."""
        if self.charges_credit_card:
            return 0
        return account_delta(self.type, self.amount_cents)


def account_delta(txn_type: str, amount_cents: int) -> int:
    """Income adds to the account; expenses and investments take from it."""
    if txn_type == TransactionType.INCOME:
        return amount_cents
    if txn_type in (TransactionType.EXPENSE, TransactionType.INVESTMENT):
        return -amount_cents
    raise ValueError(f"Unknown transaction type: {txn_type!r}")


def compute_performance(current_value_cents: int, initial_value_cents: int) -> dict:
    """
    Return the performance pair for an investment valuation.

    >>> compute_performance(115_000, 100_000)
    {'absolute_return_cents': 15000, 'percentage_return': 15.0}
    """
    absolute_return = current_value_cents - initial_value_cents
    if initial_value_cents > 0:
        percentage_return = absolute_return / initial_value_cents * 100
    else:
        percentage_return = 0.0
    return {
        "absolute_return_cents": absolute_return,
        "percentage_return": percentage_return,
    }


def account_fields_changed(before: LedgerEntry, after: LedgerEntry) -> bool:
    """True when an update changes what the transaction does to its account or card."""
    return (
        before.amount_cents != after.amount_cents
        or before.type != after.type
        or before.account_id != after.account_id
        or before.credit_card_id != after.credit_card_id
    )


def investment_fields_changed(before: LedgerEntry, after: LedgerEntry) -> bool:
    """True when an update changes what the transaction does to an investment."""
    involves_investment = (
        before.type == TransactionType.INVESTMENT or after.type == TransactionType.INVESTMENT
    )
    return involves_investment and (
        before.amount_cents != after.amount_cents
        or before.type != after.type
        or before.investment_id != after.investment_id
    )
