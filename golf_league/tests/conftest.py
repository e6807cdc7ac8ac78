"""
Shared pytest configuration for backend tests.

Runs against TEST_DATABASE_URL. Without it, each test gets a fresh
file-backed SQLite database (aiosqlite) in its tmp_path, so the suite needs
no server and separate sessions get separate connections.

SAFETY: a non-SQLite URL is refused unless its database name contains
"test", so a misconfigured environment can never drop real tables.
"""

import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import NullPool, StaticPool  # noqa: E402
from golf_league.database.db import Base  # noqa: E402


def _resolve_test_database_url():
    """Read TEST_DATABASE_URL with safety checks.

    Returns None when unset (a per-test SQLite file is used instead).
    Raises ``RuntimeError`` if a server URL does not point to a database
    whose name contains "test".
    """
    url = os.getenv("TEST_DATABASE_URL")
    if not url or url.startswith("sqlite"):
        return url

    db_name = url.rsplit("/", 1)[-1].split("?")[0]
    if "test" not in db_name.lower():
        raise RuntimeError(
            f"\n{'=' * 70}\n"
            f"  SAFETY: Refusing to run tests against database '{db_name}'.\n"
            f"  The database name must contain 'test' to prevent accidental\n"
            f"  data loss in development or production databases.\n\n"
            f"  Fix: set TEST_DATABASE_URL to a test database, e.g.:\n"
            f"    export TEST_DATABASE_URL=postgresql+asyncpg://.../{db_name}_test\n"
            f"{'=' * 70}"
        )
    return url


# Validated at import time so pytest fails immediately with a clear message
TEST_DATABASE_URL = _resolve_test_database_url()


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine with all tables."""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'golf_league_test.db'}"
    if url.startswith("sqlite") and ":memory:" in url:
        # One shared connection so the in-memory database survives across sessions
        engine = create_async_engine(
            url,
            echo=False,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        # NullPool avoids "Future attached to different loop" errors across tests
        engine = create_async_engine(url, echo=False, poolclass=NullPool)

    async with engine.begin() as conn:
        from golf_league.database import models  # noqa: F401

        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    """Session factory bound to the test engine (for multi-session scenarios)."""
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        try:
            yield session
        finally:
            try:
                await session.rollback()
            except Exception:
                pass
            await session.close()


@pytest.fixture
def twilio_env(monkeypatch):
    """Configure fake Twilio credentials."""
    monkeypatch.setenv("TWILIO_ACCOUNT_SID", "AC_test")
    monkeypatch.setenv("TWILIO_AUTH_TOKEN", "token")
    monkeypatch.setenv("TWILIO_PHONE_NUMBER", "+15550009999")
