"""
Notekeep Backend: Test Configuration (conftest.py)
==================================================

What:  Shared pytest fixtures for the whole suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite +
       StaticPool, so all sessions share the one connection) with the schema
       created from the ORM metadata. API tests run the real FastAPI app over
       httpx's ASGITransport with `get_db_session` overridden to use it.

Fixture Hierarchy:
    db_engine ─┬─ session_factory ─┬─ db_session   (service tests)
               │                   └─ client       (API tests)
               └─ user / other_user                (persisted accounts)
    auth_headers / other_auth_headers              (Bearer tokens)
"""

import os

# Settings are read at import time; point them at throwaway values first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-not-for-production-0123456789"
os.environ["ENVIRONMENT"] = "development"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Callable, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import notekeep.models  # noqa: F401
from notekeep.database import Base, get_db_session
from notekeep.models.user import User
from notekeep.services.auth_service import hash_password
from notekeep.services.token_service import token_service

TEST_PASSWORD = "correct-horse"


class FakeClock:
    """Deterministic clock for NoteService; every call advances one second."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + timedelta(seconds=1)
        return value

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(db_engine) -> async_sessionmaker:
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """An AsyncSession stand-in for tests that force store failures."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc))


# ══════════════════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def password_hash() -> str:
    # argon2 is deliberately slow; hash the shared fixture password once.
    return hash_password(TEST_PASSWORD)


async def _create_user(session_factory, email: str, password_hash: str) -> User:
    async with session_factory() as session:
        user = User(
            email=email,
            password_hash=password_hash,
            first_name="Test",
            last_name="User",
            contact_number="555-0100",
        )
        session.add(user)
        await session.commit()
        return user


@pytest_asyncio.fixture
async def user(session_factory, password_hash) -> User:
    return await _create_user(session_factory, "alice@example.com", password_hash)


@pytest_asyncio.fixture
async def other_user(session_factory, password_hash) -> User:
    return await _create_user(session_factory, "bob@example.com", password_hash)


def _bearer(account: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_service.create_token(account.id, account.email)}"}


@pytest.fixture
def auth_headers(user) -> Dict[str, str]:
    return _bearer(user)


@pytest.fixture
def other_auth_headers(other_user) -> Dict[str, str]:
    return _bearer(other_user)


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient bound to the app, with each request getting its own
    session on the test database (commit on success, rollback on error).
    """
    from notekeep.main import app

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def create_note(client, auth_headers) -> Callable:
    """POSTs a note as `user` and returns the note payload."""

    async def _create(title: str = "Groceries", body: str = "milk, eggs", headers=None) -> dict:
        response = await client.post(
            "/notes", json={"title": title, "body": body}, headers=headers or auth_headers
        )
        assert response.status_code == 201, response.text
        return response.json()["note"]

    return _create
