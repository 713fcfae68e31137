"""
FastAPI dependencies for authentication and service wiring.

  get_current_user (JWT -> User)
  get_transaction_service (request session -> TransactionService)

Every ledger endpoint declares get_current_user; the user's id is then
passed to the service layer as owner_id, which scopes every query. There is
no way to reach another user's records through these endpoints.

get_transaction_service builds the transaction service for the request:
the SQLAlchemy stores and a unit-of-work runner over the same request
session that get_db provides (FastAPI caches get_db per request, so the
user lookup and the service share one session).
"""

import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.user import User
from app.repositories import (
    SQLAlchemyAccountRepository,
    SQLAlchemyCategoryRepository,
    SQLAlchemyCreditCardRepository,
    SQLAlchemyInvestmentRepository,
    SQLAlchemyTransactionRepository,
)
from app.security import decode_access_token
from app.services.transaction_service import TransactionService
from app.unit_of_work import SessionUnitRunner


# The tokenUrl points to the login endpoint (used by Swagger UI's "Authorize" button).
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/users/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Extract and validate the JWT token, then return the corresponding User.

    Raises:
        HTTPException 401: If the token is invalid or the user doesn't exist.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
        user_id_str: str | None = payload.get("sub")
        if user_id_str is None:
            raise credentials_exception
        user_id = uuid.UUID(user_id_str)
    except (JWTError, ValueError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise credentials_exception

    return user


def get_transaction_service(
    db: AsyncSession = Depends(get_db),
) -> TransactionService:
    return TransactionService(
        runner=SessionUnitRunner(db, timeout_seconds=settings.UNIT_OF_WORK_TIMEOUT_SECONDS),
        transactions=SQLAlchemyTransactionRepository(),
        accounts=SQLAlchemyAccountRepository(),
        investments=SQLAlchemyInvestmentRepository(),
        credit_cards=SQLAlchemyCreditCardRepository(),
        categories=SQLAlchemyCategoryRepository(),
        top_categories=settings.STATS_TOP_CATEGORIES,
    )
