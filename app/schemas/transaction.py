"""
Pydantic schemas for Transaction endpoints.

All monetary amounts are in integer cents (e.g., $10.50 = 1050).

The request schemas are also the normalization step for the ledger: dates
sent as text are parsed here, naive datetimes are taken as UTC, and
references are validated as UUIDs, all before the service opens a unit
of work.
"""

import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.transaction import TransactionType


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AttachmentCreate(BaseModel):
    """Metadata of a file already stored by the upload layer."""
    filename: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=1024)
    mime_type: str | None = Field(None, max_length=100)


class TransactionCreateRequest(BaseModel):
    """Request body for POST /transactions."""
    type: TransactionType
    amount_cents: int = Field(ge=0, description="Amount in cents (never negative)")
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    description: str | None = Field(None, max_length=255)
    account_id: uuid.UUID
    category_id: uuid.UUID | None = None
    credit_card_id: uuid.UUID | None = Field(
        None, description="Credit card charged (expenses only)"
    )
    investment_id: uuid.UUID | None = Field(
        None, description="Investment funded (investment transactions only)"
    )
    attachments: list[AttachmentCreate] = Field(default_factory=list)

    model_config = {"use_enum_values": True}

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class TransactionUpdateRequest(BaseModel):
    """
    Request body for PUT /transactions/{id}.

    Every field is optional; only the fields sent are changed. The optional
    references (category, credit card, investment, description) may be
    cleared with an explicit null.
    """
    type: TransactionType | None = None
    amount_cents: int | None = Field(None, ge=0)
    date: datetime | None = None
    description: str | None = Field(None, max_length=255)
    account_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    credit_card_id: uuid.UUID | None = None
    investment_id: uuid.UUID | None = None

    model_config = {"use_enum_values": True}

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @model_validator(mode="after")
    def required_fields_not_null(self):
        """type, amount, date and account can be changed but not removed."""
        for field in ("type", "amount_cents", "date", "account_id"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class TransactionFilters(BaseModel):
    """Query filters for listing transactions."""
    type: TransactionType | None = None
    account_id: uuid.UUID | None = None
    category_id: uuid.UUID | None = None
    investment_id: uuid.UUID | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)

    model_config = {"use_enum_values": True}

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class AttachmentResponse(BaseModel):
    id: uuid.UUID
    filename: str
    url: str
    mime_type: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class CategorySummary(BaseModel):
    id: uuid.UUID
    name: str
    type: str

    model_config = {"from_attributes": True}


class CreditCardSummary(BaseModel):
    id: uuid.UUID
    name: str

    model_config = {"from_attributes": True}


class InvestmentSummary(BaseModel):
    id: uuid.UUID
    name: str
    type: str
    current_value_cents: int

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    """Public representation of a transaction with its references resolved."""
    id: uuid.UUID
    type: TransactionType
    amount_cents: int
    date: datetime
    description: str | None
    account_id: uuid.UUID
    category_id: uuid.UUID | None
    credit_card_id: uuid.UUID | None
    investment_id: uuid.UUID | None
    category: CategorySummary | None
    credit_card: CreditCardSummary | None
    investment: InvestmentSummary | None
    attachments: list[AttachmentResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TransactionListResponse(BaseModel):
    """Paginated transaction listing."""
    transactions: list[TransactionResponse]
    total: int
    page: int
    limit: int
    pages: int


class DeleteResponse(BaseModel):
    success: bool


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

StatsPeriod = Literal["day", "week", "month", "year"]


class StatsOverview(BaseModel):
    total_income_cents: int
    total_expenses_cents: int
    total_investment_cents: int
    balance_cents: int
    period: StatsPeriod


class CategoryBreakdown(BaseModel):
    category: str
    amount_cents: int
    percentage: float


class DailyTotals(BaseModel):
    date: str
    income_cents: int
    expense_cents: int
    investment_cents: int


class TransactionStatsResponse(BaseModel):
    overview: StatsOverview
    expenses_by_category: list[CategoryBreakdown]
    income_by_category: list[CategoryBreakdown]
    investments_by_type: list[CategoryBreakdown]
    chart_data: list[DailyTotals]
