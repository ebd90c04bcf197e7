# tests/conftest.py
"""Root pytest configuration and shared fixtures."""

import os

# Must happen before inkpress is imported anywhere: the engine is built
# from settings at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["LOG_TO_FILE"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENVIRONMENT"] = "test"

from collections.abc import AsyncGenerator  # noqa: E402

from httpx import ASGITransport, AsyncClient  # noqa: E402
from pytest import fixture  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from inkpress.db import async_session_maker, close_db, init_db  # noqa: E402
from inkpress.main import app  # noqa: E402


@fixture
async def db() -> AsyncGenerator[None]:
    """
    Fresh in-memory database for one test.

    The engine keeps a single shared connection; disposing it at teardown
    throws the whole database away.
    """
    await init_db()
    yield
    await close_db()


@fixture
async def session(db: None) -> AsyncGenerator[AsyncSession]:
    """Session for repository tests (flushes are visible, nothing is committed)."""
    async with async_session_maker() as session:
        yield session
        await session.rollback()


@fixture
async def client(db: None) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        base_url="http://test",
        transport=ASGITransport(app=app),
    ) as ac:
        yield ac
