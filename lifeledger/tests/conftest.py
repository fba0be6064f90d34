"""
Pytest configuration and fixtures for lifeledger tests
"""
import os

# Point the application at SQLite before any lifeledger module reads settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")

import pytest
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from lifeledger.main import create_app
from lifeledger.db.base import Base
from lifeledger.db import base_models  # noqa: F401
from lifeledger.models.category import Category
from lifeledger.repositories.category_repository import CategoryRepository
from lifeledger.services.locks import RuleLocks
from lifeledger.services.schedule_engine import ScheduleEngine


# Test database URL - use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """
    Session factory bound to a fresh in-memory SQLite database.
    Each test gets a fresh database.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def test_db(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_client(test_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with dependency override for database.
    """
    app = create_app(start_scheduler=False)

    # Override database dependency
    async def override_get_db():
        yield test_db

    from lifeledger.db.session import get_db
    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def engine(test_db: AsyncSession) -> ScheduleEngine:
    """Schedule engine with its own lock registry."""
    return ScheduleEngine(test_db, locks=RuleLocks())


@pytest.fixture
async def category(test_db: AsyncSession) -> Category:
    return await CategoryRepository(test_db).create(Category(name="Housing", kind="Expense"))


@pytest.fixture
async def inactive_category(test_db: AsyncSession) -> Category:
    repo = CategoryRepository(test_db)
    category = await repo.create(Category(name="Old stuff"))
    return await repo.set_active(category, False)
