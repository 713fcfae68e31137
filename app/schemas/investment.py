"""
Pydantic schemas for Investment endpoints.

Performance is read-only: it is derived from the initial and current
values and cannot be sent by clients.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class InvestmentCreateRequest(BaseModel):
    """Request body for POST /investments."""
    name: str = Field(min_length=1, max_length=100)
    type: str = Field(min_length=1, max_length=50, description='Grouping label, e.g. "stocks"')
    initial_value_cents: int = Field(ge=0)


class PerformanceResponse(BaseModel):
    absolute_return_cents: int
    percentage_return: float


class InvestmentResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    initial_value_cents: int
    current_value_cents: int
    performance: PerformanceResponse
    created_at: datetime

    model_config = {"from_attributes": True}
