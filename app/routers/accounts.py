"""
Accounts router — account management endpoints.

All endpoints require a JWT and are scoped to the authenticated user:
  POST   /accounts                       — Create a new account
  GET    /accounts                       — List own accounts
  GET    /accounts/summary               — Total balance across own accounts
  GET    /accounts/{account_id}          — Get own account details
  GET    /accounts/{account_id}/balance  — Stored vs computed balance

Balances change only through /transactions.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.account import (
    AccountCreateRequest,
    AccountResponse,
    AccountSummaryResponse,
    BalanceResponse,
)
from app.services import account_service

router = APIRouter()


@router.post(
    "",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new account",
)
async def create_account(
    request: AccountCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an account. Its running balance starts at the opening balance;
    the authenticated user becomes the owner.
    """
    return await account_service.create_account(
        db=db,
        owner_id=user.id,
        name=request.name,
        account_type=request.account_type,
        initial_balance_cents=request.initial_balance_cents,
        currency=request.currency,
    )


@router.get(
    "",
    response_model=list[AccountResponse],
    summary="List your accounts",
)
async def list_accounts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.get_accounts(db, user.id)


# Declared before /{account_id} so "summary" isn't parsed as an id
@router.get(
    "/summary",
    response_model=AccountSummaryResponse,
    summary="Total balance across your accounts",
)
async def get_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await account_service.get_summary(db, user.id)


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get account details",
)
async def get_account(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Returns 404 if the account doesn't exist or belongs to someone else."""
    return await account_service.get_account(db, account_id, user.id)


@router.get(
    "/{account_id}/balance",
    response_model=BalanceResponse,
    summary="Check account balance",
)
async def get_balance(
    account_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get the stored balance together with the balance recomputed from the
    opening balance and every transaction. `match` is false only if the
    two disagree, which would indicate a data integrity issue.
    """
    return await account_service.get_balance(db, account_id, user.id)
