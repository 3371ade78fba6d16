"""
Test fixtures for the Card Statements API test suite.

This module provides shared fixtures used across all test files:

  - db_engine / db_session: Fresh in-memory SQLite database for each test
  - client: Async HTTP test client with the test database injected
  - card / checking / usd_checking: accounts created through the API

Key design decisions:
  - In-memory SQLite (sqlite+aiosqlite://) is used for speed and isolation.
    Each test gets a completely fresh database.
  - We override FastAPI's get_db dependency to inject our test session,
    so the application code works exactly as it does in production.
  - Pure engine tests (periods, aggregator) need none of this and build
    ExpenseRecord / AccountConfig values directly.
"""

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.database import Base, get_db
from app.main import app


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
async def client(db_engine):
    """
    Async HTTP test client with the test database injected.

    This overrides the get_db dependency so all requests hit the
    in-memory test database instead of the real one.
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

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def card(client):
    """A peso credit card closing on the 15th."""
    response = await client.post(
        "/accounts",
        json={
            "name": "Visa",
            "account_type": "credit_card",
            "currency": "ARS",
            "closing_day": 15,
        },
    )
    assert response.status_code == 201, f"Card creation failed: {response.text}"
    return response.json()


@pytest_asyncio.fixture
async def checking(client):
    """A peso checking account with money in it."""
    response = await client.post(
        "/accounts",
        json={
            "name": "Checking ARS",
            "account_type": "checking",
            "currency": "ARS",
            "initial_balance_cents": 5_000_000,
        },
    )
    assert response.status_code == 201
    return response.json()


@pytest_asyncio.fixture
async def usd_checking(client):
    """A dollar checking account."""
    response = await client.post(
        "/accounts",
        json={
            "name": "Checking USD",
            "account_type": "checking",
            "currency": "USD",
            "initial_balance_cents": 100_000,
        },
    )
    assert response.status_code == 201
    return response.json()
