"""Shared test fixtures."""

from collections.abc import AsyncIterator

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ride_coach_server.models.base import Base
from ride_coach_server.repositories.memory import InMemoryTrainingRepository
from ride_coach_server.repositories.sql import SQLAlchemyTrainingRepository
from ride_coach_server.services.ingest import IngestService
from ride_coach_server.services.locks import OwnerLocks

WINDOW_DAYS = 60.0


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Create async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Create async session for testing."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture
def memory_repository() -> InMemoryTrainingRepository:
    """Dict-backed repository with a fixed 60-day window."""
    return InMemoryTrainingRepository(default_window_days=WINDOW_DAYS)


@pytest.fixture
def sql_repository(async_session: AsyncSession) -> SQLAlchemyTrainingRepository:
    """SQLite-backed repository with a fixed 60-day window."""
    return SQLAlchemyTrainingRepository(async_session, default_window_days=WINDOW_DAYS)


@pytest.fixture(params=["memory", "sql"])
def repository(
    request: pytest.FixtureRequest,
    memory_repository: InMemoryTrainingRepository,
    sql_repository: SQLAlchemyTrainingRepository,
):
    """Run a test against both repository implementations."""
    return memory_repository if request.param == "memory" else sql_repository


@pytest.fixture
def locks() -> OwnerLocks:
    """Fresh per-owner lock registry."""
    return OwnerLocks()


@pytest.fixture
def ingest_service(
    memory_repository: InMemoryTrainingRepository, locks: OwnerLocks
) -> IngestService:
    """Ingest service over the in-memory repository."""
    return IngestService(memory_repository, locks)
