"""
Pydantic schemas for CreditCard endpoints.

Only the last four digits of a card number are ever accepted or returned.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CreditCardCreateRequest(BaseModel):
    """Request body for POST /credit-card."""
    name: str = Field(min_length=1, max_length=100)
    last_four: str | None = Field(None, pattern=r"^\d{4}$")
    credit_limit_cents: int = Field(ge=0)


class CreditCardResponse(BaseModel):
    id: uuid.UUID
    name: str
    last_four: str | None
    credit_limit_cents: int
    current_balance_cents: int
    available_credit_cents: int
    created_at: datetime

    model_config = {"from_attributes": True}
