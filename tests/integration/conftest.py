"""Integration test fixtures backed by a real PostgreSQL database.

These tests need DATABASE_URL to point at a disposable database and only
run when RUN_INTEGRATION=1.
"""

import asyncio
import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from src.dashboard.api.dependencies import get_db_session
from src.dashboard.core import db
from src.dashboard.core import redis as redis_core
from src.dashboard.core.config import get_settings
from src.dashboard.core.db import run_migrations_sync
from src.dashboard.main import create_app
from src.dashboard.store import SqlRecordStore
from src.dashboard.store.base import Table

INTEGRATION_DIR = Path(__file__).parent


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("RUN_INTEGRATION"):
        return
    skip = pytest.mark.skip(reason="set RUN_INTEGRATION=1 to run against PostgreSQL")
    for item in items:
        if INTEGRATION_DIR in item.path.parents:
            item.add_marker(skip)


@pytest.fixture(autouse=True)
async def _reset_redis_between_tests() -> AsyncGenerator[None]:
    """Close Redis after each test; clients are bound to the test's event loop."""
    redis_core.reset_redis_state()
    yield
    await redis_core.close_redis()


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Create test database engine and ensure migrations are applied."""
    await db.dispose_engine()

    settings = get_settings()
    test_engine = create_async_engine(settings.database_url, poolclass=NullPool)

    await asyncio.to_thread(run_migrations_sync, "head")

    yield test_engine

    async with test_engine.begin() as conn:
        tables = ", ".join(table.value for table in Table)
        await conn.execute(text(f"TRUNCATE {tables} RESTART IDENTITY"))
    await test_engine.dispose()


@pytest.fixture
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    async with AsyncSession(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def sql_store(db_session: AsyncSession) -> SqlRecordStore:
    return SqlRecordStore(db_session)


@pytest.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient]:
    """HTTP client whose requests use sessions on the test engine."""
    app = create_app()

    async def _session() -> AsyncGenerator[AsyncSession]:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            yield session

    app.dependency_overrides[get_db_session] = _session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
