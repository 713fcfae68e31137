"""
Custom exception classes and the FastAPI exception handler.

The service layer raises domain-specific errors without importing HTTP
concepts. Each error carries the status code and a machine-readable
error_type; the handler registered here turns any of them into a
consistent JSON response:

    {"detail": "Transaction 3f0c... not found", "error_type": "transaction_not_found"}

Exception hierarchy:
    LedgerAPIError (base)
    ├── NotFoundError                 — 404, resource absent or owned by someone else
    │   ├── TransactionNotFoundError
    │   ├── AccountNotFoundError      — plain, original or target account
    │   ├── InvestmentNotFoundError
    │   ├── CategoryNotFoundError
    │   ├── CreditCardNotFoundError
    │   └── AttachmentNotFoundError
    ├── TransactionUpdateError        — 500, the store returned nothing
    ├── UnitOfWorkTimeoutError        — 504, atomic unit exceeded its deadline
    ├── DuplicateEmailError           — 409
    └── InvalidCredentialsError       — 401

Ownership note:
  A record owned by another user is reported exactly like a missing one.
  Returning 403 would confirm that the id exists.
"""

import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class LedgerAPIError(Exception):
    """Base exception for all Ledger API domain errors."""

    status_code: int = 400
    error_type: str = "ledger_error"

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Not found
# ---------------------------------------------------------------------------

class NotFoundError(LedgerAPIError):
    status_code = 404
    error_type = "not_found"


class TransactionNotFoundError(NotFoundError):
    error_type = "transaction_not_found"

    def __init__(self, transaction_id: uuid.UUID):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction {transaction_id} not found")


class AccountNotFoundError(NotFoundError):
    """
    Raised when an account is missing.

    `role` distinguishes the accounts an update touches: "original" is the
    account the transaction was booked against, "target" is the account it
    is being moved to.
    """

    error_type = "account_not_found"

    def __init__(self, account_id: uuid.UUID, role: str | None = None):
        self.account_id = account_id
        self.role = role
        label = f"{role.capitalize()} account" if role else "Account"
        super().__init__(f"{label} {account_id} not found")


class InvestmentNotFoundError(NotFoundError):
    error_type = "investment_not_found"

    def __init__(self, investment_id: uuid.UUID):
        self.investment_id = investment_id
        super().__init__(f"Investment {investment_id} not found")


class CategoryNotFoundError(NotFoundError):
    error_type = "category_not_found"

    def __init__(self, category_id: uuid.UUID):
        self.category_id = category_id
        super().__init__(f"Category {category_id} not found")


class CreditCardNotFoundError(NotFoundError):
    error_type = "credit_card_not_found"

    def __init__(self, credit_card_id: uuid.UUID):
        self.credit_card_id = credit_card_id
        super().__init__(f"Credit card {credit_card_id} not found")


class AttachmentNotFoundError(NotFoundError):
    """Raised when a transaction has no attachments or none with the given id."""

    error_type = "attachment_not_found"

    def __init__(self, transaction_id: uuid.UUID, attachment_id: uuid.UUID | None = None):
        self.transaction_id = transaction_id
        self.attachment_id = attachment_id
        if attachment_id is None:
            detail = f"Transaction {transaction_id} has no attachments"
        else:
            detail = f"Attachment {attachment_id} not found"
        super().__init__(detail)


# ---------------------------------------------------------------------------
# Internal failures
# ---------------------------------------------------------------------------

class TransactionUpdateError(LedgerAPIError):
    """Raised when persisting a transaction change returned no record."""

    status_code = 500
    error_type = "transaction_update_failed"

    def __init__(self, transaction_id: uuid.UUID, action: str = "update transaction"):
        self.transaction_id = transaction_id
        super().__init__(f"Failed to {action} {transaction_id}")


class UnitOfWorkTimeoutError(LedgerAPIError):
    status_code = 504
    error_type = "unit_of_work_timeout"

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Operation did not finish within {timeout_seconds} seconds and was rolled back"
        )


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

class DuplicateEmailError(LedgerAPIError):
    """Raised when attempting to register with an email that's already in use."""

    status_code = 409
    error_type = "duplicate_email"

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email {email} is already registered")


class InvalidCredentialsError(LedgerAPIError):
    """Raised when login credentials are incorrect."""

    status_code = 401
    error_type = "invalid_credentials"

    def __init__(self):
        super().__init__("Invalid email or password")


# ---------------------------------------------------------------------------
# FastAPI exception handler
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the domain exception handler with the FastAPI application.

    Called once during app startup in main.py.
    """

    @app.exception_handler(LedgerAPIError)
    async def ledger_error_handler(
        request: Request, exc: LedgerAPIError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "request_failed",
                path=request.url.path,
                error_type=exc.error_type,
                detail=exc.detail,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_type": exc.error_type},
        )
