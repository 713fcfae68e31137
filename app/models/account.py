"""
Account model — a money-holding account owned by a User.

Each account has:
  - A name and a type: "checking", "savings", "cash", "wallet" or "other"
  - An opening balance (initial_balance_cents), fixed at creation
  - A running balance (balance_cents), updated atomically with transactions
  - A currency code (ISO 4217, USD by default)

Balance management:
  balance_cents is only ever written by the ledger reconciliation logic
  in the transaction service, inside the same unit of work that creates,
  updates or deletes the transaction causing the change. It always equals

      initial_balance_cents + income - expenses - investments

  over the transactions booked against the account (credit-card expenses
  excluded, they hit the card). account_service.get_balance recomputes this
  sum as an integrity check.

  Unlike a bank account, a personal-finance account may be overdrawn, so
  there is no non-negative constraint on the balance.

Why integer cents?
  Floating-point numbers introduce rounding errors (0.1 + 0.2 != 0.3).
  Storing cents keeps all arithmetic exact; the frontend divides by 100
  for display.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Account(Base):
    __tablename__ = "accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    account_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="checking",
    )

    # Opening balance, never changes after creation
    initial_balance_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    # Running balance, the source of truth for quick reads
    balance_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="USD",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
