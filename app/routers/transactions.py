"""
Transactions router — the HTTP surface of the ledger mutation engine.

All endpoints are scoped to the authenticated user:
  POST   /transactions                                 — Record a transaction
  GET    /transactions                                 — Paginated, filtered list
  GET    /transactions/stats?period=month              — Period statistics
  GET    /transactions/{id}                            — Get one transaction
  PUT    /transactions/{id}                            — Partial update
  DELETE /transactions/{id}                            — Delete and reverse
  DELETE /transactions/{id}/attachments/{attachment_id} — Remove an attachment

Every mutation moves the affected account, credit card and investment
balances in the same database transaction as the record itself.
"""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_current_user, get_transaction_service
from app.models.transaction import TransactionType
from app.models.user import User
from app.schemas.transaction import (
    DeleteResponse,
    StatsPeriod,
    TransactionCreateRequest,
    TransactionFilters,
    TransactionListResponse,
    TransactionResponse,
    TransactionStatsResponse,
    TransactionUpdateRequest,
)
from app.services.transaction_service import TransactionService

router = APIRouter()


@router.post(
    "",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record a transaction",
)
async def create_transaction(
    request: TransactionCreateRequest,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """
    Record an income, expense or investment and apply its effect.

    - **income**: adds to the account
    - **expense**: subtracts from the account, or is charged to
      `credit_card_id` when one is given (the account is then untouched)
    - **investment**: subtracts from the account; with `investment_id`
      it also grows that investment's current value

    All amounts are in **integer cents** (e.g., $10.50 = 1050).
    """
    return await service.create_transaction(user.id, request)


@router.get(
    "",
    response_model=TransactionListResponse,
    summary="List transactions",
)
async def list_transactions(
    type: TransactionType | None = Query(None, description="Filter by transaction type"),
    account_id: uuid.UUID | None = Query(None),
    category_id: uuid.UUID | None = Query(None),
    investment_id: uuid.UUID | None = Query(None),
    start_date: datetime | None = Query(None, description="Inclusive lower bound"),
    end_date: datetime | None = Query(None, description="Inclusive upper bound"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """Newest first. `pages` is the number of pages at the given limit."""
    filters = TransactionFilters(
        type=type,
        account_id=account_id,
        category_id=category_id,
        investment_id=investment_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return await service.list_transactions(user.id, filters)


# Declared before /{transaction_id} so "stats" isn't parsed as an id
@router.get(
    "/stats",
    response_model=TransactionStatsResponse,
    summary="Transaction statistics for a period",
)
async def get_stats(
    period: StatsPeriod = Query("month", description="day, week, month or year"),
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """
    Totals, top categories, investments by type and a daily series over the
    last day/week/month/year.
    """
    return await service.get_transaction_stats(user.id, period)


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a transaction",
)
async def get_transaction(
    transaction_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.get_transaction(transaction_id, user.id)


@router.put(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Update a transaction",
)
async def update_transaction(
    transaction_id: uuid.UUID,
    request: TransactionUpdateRequest,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    """
    Only the fields sent are changed. Changing the amount, type, account,
    card or investment reverses the old effect and applies the new one.
    """
    return await service.update_transaction(transaction_id, user.id, request)


@router.delete(
    "/{transaction_id}",
    response_model=DeleteResponse,
    summary="Delete a transaction",
)
async def delete_transaction(
    transaction_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.delete_transaction(transaction_id, user.id)


@router.delete(
    "/{transaction_id}/attachments/{attachment_id}",
    response_model=TransactionResponse,
    summary="Remove an attachment",
)
async def remove_attachment(
    transaction_id: uuid.UUID,
    attachment_id: uuid.UUID,
    user: User = Depends(get_current_user),
    service: TransactionService = Depends(get_transaction_service),
):
    return await service.remove_attachment(transaction_id, user.id, attachment_id)
