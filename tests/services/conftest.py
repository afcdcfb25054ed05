"""Service test fixtures: async DB, seed helpers and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test session factory
    - db_manager patched so the readiness probe sees the test engine

Design Decisions:
    - SQLite in-memory with StaticPool: one shared connection, so FOR UPDATE
      and SKIP LOCKED are not exercised here; ordering and state rules are.
      Lock behavior between concurrent sessions is covered by tests marked
      "postgres", which run only when TEST_POSTGRES_URL is set
    - SQLite leaves foreign keys off by default; fk_db turns them on for
      tests that depend on ON DELETE behavior
    - Seed helpers write straight through the ORM so each test states only
      the setup it depends on
"""

import os
import random

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from httpx import ASGITransport, AsyncClient

from jokefactory.config import Settings, get_settings
from jokefactory.db.base import Base
from jokefactory.infrastructure.database import get_db, DatabaseSessionManager
import jokefactory.infrastructure.database as db_module
from jokefactory.main import app
from tests.services.seed_data import seed_game


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        admin_password="letmein",
        default_customer_budget=10,
        default_batch_size=3,
    )


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
async def client(test_engine, test_session_factory, test_settings):
    """FastAPI test client with DB and settings dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def game(test_db):
    """ACTIVE round 1 (batch size 3, budget 5), one team with JM and QC, one customer."""
    return await seed_game(test_db)


@pytest.fixture
async def fk_db():
    """Session on an in-memory SQLite engine that enforces foreign keys."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False,
    )() as session:
        yield session
    await engine.dispose()


@pytest.fixture
async def pg_session_factory():
    """Session factory on a real PostgreSQL database named by TEST_POSTGRES_URL."""
    url = os.environ.get("TEST_POSTGRES_URL")
    if not url:
        pytest.skip("TEST_POSTGRES_URL not set")
    engine = create_async_engine(url, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()
