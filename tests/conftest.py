"""Shared test fixtures."""

from collections.abc import AsyncIterator

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from readiness_engine.models import Athlete, Base, Notification


@pytest.fixture
async def async_engine():
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
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def async_session(session_factory) -> AsyncIterator[AsyncSession]:
    """Create async session for testing."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def athlete(async_session: AsyncSession) -> Athlete:
    """Create a test athlete."""
    athlete = Athlete(
        id="athlete-uuid-1",
        name="Test Runner",
        coach_id="coach-uuid-1",
        age=34,
        weekly_km=55.0,
        training_age_years=4.0,
        resting_hr=50,
        max_hr=188,
        is_active=True,
    )
    async_session.add(athlete)
    await async_session.commit()
    await async_session.refresh(athlete)
    return athlete


class RecordingSink:
    """Notification sink that keeps what it was sent."""

    def __init__(self) -> None:
        self.sent: list[Notification] = []

    async def send(self, notification: Notification) -> None:
        self.sent.append(notification)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()
