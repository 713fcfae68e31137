"""
Transaction model — one income, expense or investment entry.

Key fields:
  - type: "income", "expense" or "investment"
  - amount_cents: Never negative (the direction is implied by the type)
  - date: When the money moved (timezone-aware, stored as UTC)
  - account_id: The account the transaction is booked against
  - category_id: Optional user category
  - credit_card_id: Set on expenses charged to a credit card
  - investment_id: Set on investment-type transactions funding an investment
  - attachments: Receipts and other files linked to the transaction

Effect on balances (see app/services/reconciliation.py):
  - expense + credit card     -> card balance grows, account untouched
  - investment + investment   -> investment value grows, account debited
  - anything else             -> account credited (income) or debited

Why amount_cents is never negative:
  A positive amount with a separate type is clearer than signed integers.
  You never wonder "does negative mean income or expense?".
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.category import Category
from app.models.credit_card import CreditCard
from app.models.investment import Investment


class TransactionType(str, enum.Enum):
    """
    Direction of a transaction.

    Inherits from str so values compare equal to the plain strings stored
    in the database and serialize naturally to JSON.
    """
    INCOME = "income"
    EXPENSE = "expense"
    INVESTMENT = "investment"


class TransactionAttachment(Base):
    __tablename__ = "transaction_attachments"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    transaction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("transactions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    filename: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Where the file storage layer keeps the file
    url: Mapped[str] = mapped_column(
        String(1024),
        nullable=False,
    )

    mime_type: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount_cents >= 0", name="ck_transactions_non_negative_amount"),
        CheckConstraint(
            "type IN ('income', 'expense', 'investment')",
            name="ck_transactions_type",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    amount_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    # Indexed for the date-range queries behind statistics and listings
    date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    category_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("categories.id"),
        nullable=True,
        index=True,
    )

    credit_card_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("credit_cards.id"),
        nullable=True,
        index=True,
    )

    investment_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("investments.id"),
        nullable=True,
        index=True,
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

    # --- Relationships ---
    # Loaded explicitly by the repository (selectinload); async sessions
    # cannot lazy-load on attribute access.
    category: Mapped[Category | None] = relationship()
    credit_card: Mapped[CreditCard | None] = relationship()
    investment: Mapped[Investment | None] = relationship()
    attachments: Mapped[list[TransactionAttachment]] = relationship(
        cascade="all, delete-orphan",
        order_by=TransactionAttachment.created_at,
    )
