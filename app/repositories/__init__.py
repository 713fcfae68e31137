"""
Persistence stores used by the transaction service.

interfaces.py declares the contracts; the SQLAlchemy classes below are the
implementations wired in by app.dependencies.
"""

from app.repositories.account_repository import SQLAlchemyAccountRepository  # noqa: F401
from app.repositories.category_repository import SQLAlchemyCategoryRepository  # noqa: F401
from app.repositories.credit_card_repository import SQLAlchemyCreditCardRepository  # noqa: F401
from app.repositories.investment_repository import SQLAlchemyInvestmentRepository  # noqa: F401
from app.repositories.transaction_repository import SQLAlchemyTransactionRepository  # noqa: F401
