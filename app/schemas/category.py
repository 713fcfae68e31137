"""Pydantic schemas for Category endpoints."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.models.transaction import TransactionType


class CategoryCreateRequest(BaseModel):
    """Request body for POST /categories."""
    name: str = Field(min_length=1, max_length=100)
    type: TransactionType

    model_config = {"use_enum_values": True}


class CategoryResponse(BaseModel):
    id: uuid.UUID
    name: str
    type: TransactionType
    created_at: datetime

    model_config = {"from_attributes": True}
