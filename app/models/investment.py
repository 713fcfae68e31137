"""
Investment model — a position the user funds through investment transactions.

Valuation:
  - initial_value_cents: value when the investment was registered
  - current_value_cents: initial value plus every investment-type
    transaction that references this investment

Performance is derived, never entered by hand:

    absolute_return_cents = current_value_cents - initial_value_cents
    percentage_return     = absolute_return / initial_value * 100   (0 if initial is 0)

Both are stored so that listings don't recompute them, and rewritten on
every valuation change through the `performance` property.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, Float, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Investment(Base):
    __tablename__ = "investments"

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

    # Free-form label used to group investments in statistics ("stocks", "crypto")
    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    initial_value_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    current_value_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    absolute_return_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    percentage_return: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
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

    @property
    def performance(self) -> dict:
        return {
            "absolute_return_cents": self.absolute_return_cents,
            "percentage_return": self.percentage_return,
        }

    @performance.setter
    def performance(self, value: dict) -> None:
        self.absolute_return_cents = value["absolute_return_cents"]
        self.percentage_return = value["percentage_return"]
