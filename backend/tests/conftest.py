"""
Pytest fixtures for test database, client, clock and authentication.

Each test gets its own SQLite file (aiosqlite) with the full schema,
including the partial unique index that keeps slots exclusive. The clock is
pinned so booking windows and refund tiers are deterministic.
"""

import os

os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("SLOT_GUARD", "optimistic")

from datetime import date, datetime, timezone
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from arena.main import app
from arena.core.clock import FixedClock, get_clock
from arena.core.security import create_access_token
from arena.db.base import Base
from arena.db.session import get_db, get_session_factory
from arena.models.user import User
from arena.models.venue import Venue, VenueOperatingHours

# Monday 08:00 UTC; "tomorrow" is Tuesday 2026-03-03
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
TOMORROW = date(2026, 3, 3)


def build_venue(**overrides) -> Venue:
    """Transient venue open 06:00-23:00 every day, priced 2000 with a 1.2 evening multiplier."""
    hours = overrides.pop("hours", None) or [
        VenueOperatingHours(weekday=day, open_time="06:00", close_time="23:00", closed=False)
        for day in range(7)
    ]
    fields = dict(
        name="Test Arena",
        status="active",
        is_bookable=True,
        timezone="UTC",
        base_price=2000,
        currency="PKR",
        evening_multiplier=1.2,
        minimum_booking_duration=1,
        advance_booking_days=30,
    )
    fields.update(overrides)
    venue = Venue(**fields)
    venue.operating_hours = hours
    return venue


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'arena_test.db'}")

    # pysqlite's own transaction handling breaks SAVEPOINT; emit BEGIN ourselves
    @event.listens_for(test_engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(test_engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, session_factory, clock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the DB, clock and background session factory overridden."""

    async def override_get_db():
        try:
            yield db_session
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, email: str, full_name: str) -> User:
    user = User(email=email, full_name=full_name)
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    # refresh opened a read transaction; SQLite writers elsewhere wait on it
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "player@example.com", "Test Player")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "rival@example.com", "Rival Player")


def _headers_for(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': str(user.id)})}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Authorization headers with Bearer token."""
    return _headers_for(test_user)


@pytest.fixture
def other_headers(other_user: User) -> dict:
    return _headers_for(other_user)


@pytest_asyncio.fixture
async def test_venue(db_session: AsyncSession) -> Venue:
    venue = build_venue()
    db_session.add(venue)
    await db_session.commit()
    await db_session.refresh(venue)
    # refresh opened a read transaction; SQLite writers elsewhere wait on it
    await db_session.commit()
    return venue


@pytest.fixture
def booking_payload(test_venue: Venue) -> dict:
    return {
        "venue_id": test_venue.id,
        "date": TOMORROW.isoformat(),
        "slot_start": "18:00",
        "duration": 1,
        "customer_details": {
            "name": "Test Player",
            "phone_number": "+923001234567",
            "email": "player@example.com",
        },
    }
