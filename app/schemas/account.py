"""
Pydantic schemas for Account endpoints.

All monetary amounts are expressed in integer cents.
"""

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts."""
    name: str = Field(min_length=1, max_length=100)
    account_type: Literal["checking", "savings", "cash", "wallet", "other"] = Field(
        default="checking",
        description="Kind of account",
    )
    initial_balance_cents: int = Field(
        default=0,
        description="Opening balance in cents (may be negative for an overdrawn account)",
    )
    currency: str = Field(default="USD", min_length=3, max_length=3)


class AccountResponse(BaseModel):
    """Public representation of an account."""
    id: uuid.UUID
    name: str
    account_type: str
    initial_balance_cents: int
    balance_cents: int
    currency: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AccountSummaryResponse(BaseModel):
    """Totals across all of the user's accounts."""
    total_balance_cents: int
    account_count: int


class BalanceResponse(BaseModel):
    """
    Balance check response — includes both cached and computed values.

    `match` tells whether the stored balance agrees with the opening
    balance plus every transaction booked against the account. A mismatch
    would indicate a data integrity issue.
    """
    account_id: uuid.UUID
    balance_cents: int
    computed_balance_cents: int
    match: bool
    currency: str
