"""
Shared pytest fixtures.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from studyplan.infrastructure.local.activity_repository import SqliteActivityRepository
from studyplan.infrastructure.local.database import Base
from studyplan.infrastructure.local.marketplace_repository import (
    SqliteMarketplaceRepository,
    SqlitePlanForkRepository,
    SqlitePurchaseRepository,
)
from studyplan.infrastructure.local.plan_repository import SqlitePlanRepository
from studyplan.infrastructure.local.todo_repository import SqliteTodoRepository


@pytest.fixture
async def session_factory():
    """In-memory database session factory."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def test_user_id() -> str:
    return "test_user"


@pytest.fixture
def other_user_id() -> str:
    return "other_user"


@pytest.fixture
def plan_repo(session_factory):
    return SqlitePlanRepository(session_factory=session_factory)


@pytest.fixture
def todo_repo(session_factory):
    return SqliteTodoRepository(session_factory=session_factory)


@pytest.fixture
def marketplace_repo(session_factory):
    return SqliteMarketplaceRepository(session_factory=session_factory)


@pytest.fixture
def purchase_repo(session_factory):
    return SqlitePurchaseRepository(session_factory=session_factory)


@pytest.fixture
def fork_repo(session_factory):
    return SqlitePlanForkRepository(session_factory=session_factory)


@pytest.fixture
def activity_repo(session_factory):
    return SqliteActivityRepository(session_factory=session_factory)
