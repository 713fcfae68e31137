"""
SQLAlchemy ORM models package.

All models are imported here so that:
  1. Base.metadata knows every table before create_all() runs
  2. Other modules can import from app.models directly
"""

from app.models.user import User  # noqa: F401
from app.models.account import Account  # noqa: F401
from app.models.category import Category  # noqa: F401
from app.models.credit_card import CreditCard  # noqa: F401
from app.models.investment import Investment  # noqa: F401
from app.models.transaction import (  # noqa: F401
    Transaction,
    TransactionAttachment,
    TransactionType,
)
