"""
Test fixtures for the Ledger API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client (unauthenticated)
  - authenticated_client: Test client with a pre-registered user and JWT
  - second_authenticated_client: A second user, on its own client, for
    cross-user tests
  - service: TransactionService wired over db_session, for tests that
    drive the ledger engine directly
  - owner / make_account / make_investment / make_credit_card: rows
    created straight through the services for engine-level tests

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database.
  - We override FastAPI's get_db dependency to inject a session bound to
    the test engine, so the application code works exactly as it does in
    production.
  - Authenticated clients register through the real /users/register
    endpoint. Each user gets a separate AsyncClient so their
    Authorization headers never overwrite one another.
"""

import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.database import Base, get_db
from app.main import app
from app.models.user import User
from app.repositories import (
    SQLAlchemyAccountRepository,
    SQLAlchemyCategoryRepository,
    SQLAlchemyCreditCardRepository,
    SQLAlchemyInvestmentRepository,
    SQLAlchemyTransactionRepository,
)
from app.security import hash_password
from app.services import account_service, credit_card_service, investment_service
from app.services.transaction_service import TransactionService
from app.unit_of_work import SessionUnitRunner


# In-memory SQLite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def db_engine():
    """Create a fresh async engine with all tables for each test."""
    engine = create_async_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine):
    """Provide an async session bound to the test engine."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with async_session() as session:
        yield session


@pytest_asyncio.fixture
async def client_factory(db_engine):
    """
    Build async HTTP test clients with the test database injected.

    Every client returned shares the same in-memory database but has its
    own headers.
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_db():
        async with async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    clients = []

    async def make_client() -> AsyncClient:
        ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
        clients.append(ac)
        return ac

    yield make_client

    for ac in clients:
        await ac.aclose()
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(client_factory):
    """Unauthenticated client."""
    return await client_factory()


async def _register(client: AsyncClient, email: str, password: str, name: str) -> AsyncClient:
    response = await client.post(
        "/users/register",
        json={"email": email, "password": password, "name": name},
    )
    assert response.status_code == 201, f"Register failed: {response.text}"
    token = response.json()["token"]
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest_asyncio.fixture
async def authenticated_client(client_factory):
    """Test client with a pre-registered user and JWT token."""
    ac = await client_factory()
    return await _register(ac, "testuser@example.com", "SecurePass123!", "Test User")


@pytest_asyncio.fixture
async def second_authenticated_client(client_factory):
    """
    A second authenticated user for cross-user authorization tests.

    Use this alongside authenticated_client to verify that user A cannot
    reach user B's records.
    """
    ac = await client_factory()
    return await _register(ac, "seconduser@example.com", "SecurePass456!", "Second User")


# ---------------------------------------------------------------------------
# Engine-level fixtures (no HTTP)
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def service(db_session):
    """TransactionService over the test session with the SQLAlchemy stores."""
    return TransactionService(
        runner=SessionUnitRunner(db_session, timeout_seconds=5),
        transactions=SQLAlchemyTransactionRepository(),
        accounts=SQLAlchemyAccountRepository(),
        investments=SQLAlchemyInvestmentRepository(),
        credit_cards=SQLAlchemyCreditCardRepository(),
        categories=SQLAlchemyCategoryRepository(),
    )


@pytest_asyncio.fixture
async def owner(db_session):
    user = User(
        email="owner@example.com",
        hashed_password=hash_password("SecurePass123!"),
        name="Owner",
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def make_account(db_session, owner):
    """Create a committed account for `owner` with the given opening balance."""

    async def _make(balance_cents: int = 0, name: str = "Checking"):
        account = await account_service.create_account(
            db_session,
            owner_id=owner.id,
            name=name,
            initial_balance_cents=balance_cents,
        )
        await db_session.commit()
        return account

    return _make


@pytest_asyncio.fixture
async def make_investment(db_session, owner):
    async def _make(initial_value_cents: int = 0, investment_type: str = "stocks", name: str = "Index Fund"):
        investment = await investment_service.create_investment(
            db_session,
            owner_id=owner.id,
            name=name,
            investment_type=investment_type,
            initial_value_cents=initial_value_cents,
        )
        await db_session.commit()
        return investment

    return _make


@pytest_asyncio.fixture
async def make_credit_card(db_session, owner):
    async def _make(credit_limit_cents: int = 500_000, name: str = "Visa"):
        card = await credit_card_service.create_credit_card(
            db_session,
            owner_id=owner.id,
            name=name,
            credit_limit_cents=credit_limit_cents,
        )
        await db_session.commit()
        return card

    return _make
