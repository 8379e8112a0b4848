"""
NoteVault Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── engine / session_factory / db_session: fresh in-memory SQLite schema
    ├── mock_db_session: AsyncMock session for store-failure paths
    ├── token_service / credential_service: fixed secret, bcrypt cost 4
    ├── test_app: create_app() wired to the fixtures above
    └── test_client: HTTPX AsyncClient over ASGITransport
"""

import os

# Override settings BEFORE any notevault import; Settings() is built at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TOKEN_SECRET"] = "test-secret-0123456789-abcdefghijklmnopqrstuvwxyz"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["RATE_LIMIT_AUTH_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from notevault.database import Base, get_db_session
from notevault.models.account import Account
from notevault.models.note import Note  # noqa: F401
from notevault.services.credential_service import CredentialService
from notevault.services.token_service import TokenService

TEST_SECRET = os.environ["TOKEN_SECRET"]


# ══════════════════════════════════════════════════════════════════════════
# Database Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """One in-memory database per test; StaticPool keeps it on a single connection."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception())
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Service Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def token_service():
    return TokenService(secret=TEST_SECRET, ttl_seconds=3600)


@pytest.fixture
def credential_service():
    return CredentialService(rounds=4)


@pytest.fixture
def make_account():
    """Builds an unsaved Account; add it to a session to persist it."""
    def _make(email: str = "alice@x.com", full_name: str = "Alice A") -> Account:
        return Account(
            id=uuid.uuid4(),
            full_name=full_name,
            email=email,
            password_hash="$2b$04$notarealhashnotarealhashnotarealhashnotarealhashnota",
        )
    return _make


# ══════════════════════════════════════════════════════════════════════════
# HTTP Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_app(session_factory, token_service, credential_service):
    from notevault.main import create_app

    app = create_app(token_service=token_service, credential_service=credential_service)

    async def override_get_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_get_db_session
    return app


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def register(test_client):
    """Registers an account over HTTP and returns (response json, auth headers)."""
    async def _register(full_name: str, email: str, password: str):
        response = await test_client.post(
            "/api/auth/register",
            json={"full_name": full_name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body, {"Authorization": f"Bearer {body['access_token']}"}
    return _register


class CommitFailingSession(AsyncSession):
    """Flushes normally; every commit fails the way a lost connection would."""

    async def commit(self) -> None:
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))


@pytest.fixture
def fail_commits(test_app, engine):
    """
    Call with True to make every request's commit fail, False to restore.

    Usage:
        fail_commits(True)
        response = await test_client.post("/api/notes", ...)
    """
    working = test_app.dependency_overrides[get_db_session]
    failing_factory = async_sessionmaker(
        engine, class_=CommitFailingSession, expire_on_commit=False
    )

    async def failing_session():
        async with failing_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    def _toggle(enabled: bool) -> None:
        test_app.dependency_overrides[get_db_session] = failing_session if enabled else working

    return _toggle
