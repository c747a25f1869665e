"""Shared pytest fixtures for the scheduled email engine test suite.

Provides:
- A fresh in-memory async SQLite database per test
- AsyncSession and session factory
- A controllable clock and a private event bus
- FastAPI test client (httpx.AsyncClient) wired to all of the above
- Schedule / instance / user factories
"""

import os
from datetime import date, datetime, timedelta
from typing import AsyncGenerator, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

# Override settings BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("TIMEZONE", "UTC")
os.environ.setdefault("DEPARTMENT_NAME", "Operations")
os.environ.setdefault("DEPARTMENT_NAME_ARABIC", "العمليات")

from core.events import EventBus  # noqa: E402
from db.database import create_db_engine, create_session_factory, init_db  # noqa: E402

# Friday 15 March 2024, 10:00 local
FIXED_NOW = datetime(2024, 3, 15, 10, 0)


class FakeClock:
    """Callable clock returning a settable naive local datetime."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def today(self) -> date:
        return self.now.date()

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Engine plumbing
# ---------------------------------------------------------------------------

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def recorded_events(event_bus):
    """List that receives every event published on the test bus."""
    events = []
    event_bus.subscribe(events.append)
    return events


# ---------------------------------------------------------------------------
# Database fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_engine():
    """A private in-memory database with all tables created."""
    engine = create_db_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# App / HTTP client fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(db_engine, session_factory, clock, event_bus, monkeypatch):
    """FastAPI app whose dependencies point at the test database, clock and bus."""
    import db.database as db_mod
    from app.dependencies import get_bus, get_clock, get_db
    from app.main import create_app

    monkeypatch.setattr(db_mod, "engine", db_engine)
    monkeypatch.setattr(db_mod, "AsyncSessionLocal", session_factory)

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    test_app = create_app()
    test_app.dependency_overrides[get_db] = _test_db
    test_app.dependency_overrides[get_clock] = lambda: clock
    test_app.dependency_overrides[get_bus] = lambda: event_bus
    yield test_app
    test_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", follow_redirects=True) as ac:
        yield ac


# ---------------------------------------------------------------------------
# Test data factories
# ---------------------------------------------------------------------------
# The in-memory database is a single shared connection, so factories commit
# through db_session and leave no transaction open behind them.

@pytest.fixture
def make_schedule(db_session):
    """Insert an EmailSchedule row directly, bypassing generation.

    Returns the schedule id. ``created_at`` defaults to a date well before
    the fixed clock so backfill tests are not limited by it.
    """
    from db.models.email_schedule import EmailSchedule

    async def _make(
        name: str = "Daily report",
        frequency_type: str = "daily",
        frequency_days: Optional[list] = None,
        send_time: str = "09:00",
        created_at: datetime = datetime(2024, 1, 1, 8, 0),
        **fields,
    ) -> str:
        values = dict(
            id=str(uuid4()),
            name=name,
            to_emails="team@example.com",
            subject_template="Report {{date}}",
            body_template="Hello {{department_name}}",
            frequency_type=frequency_type,
            frequency_days=frequency_days,
            send_time=send_time,
            language="en",
            is_active=True,
            created_at=created_at,
        )
        values.update(fields)
        db_session.add(EmailSchedule(**values))
        await db_session.commit()
        return values["id"]

    return _make


@pytest.fixture
def make_instance(db_session):
    """Insert a ScheduleInstance row directly; returns its id."""
    from db.models.schedule_instance import ScheduleInstance

    async def _make(
        schedule_id: str,
        scheduled_date: date,
        status: str = "pending",
        scheduled_time: str = "09:00",
    ) -> str:
        instance_id = str(uuid4())
        db_session.add(
            ScheduleInstance(
                id=instance_id,
                schedule_id=schedule_id,
                scheduled_date=scheduled_date,
                scheduled_time=scheduled_time,
                status=status,
            )
        )
        await db_session.commit()
        return instance_id

    return _make


@pytest_asyncio.fixture
async def test_user(db_session):
    """Operator with English and Arabic display names."""
    from db.models.user import User

    user = User(id="u-1001", display_name="Sara Ahmed", arabic_name="سارة أحمد", is_active=True)
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.fixture
def schedule_data():
    """Builder for a valid schedule definition (service layer or HTTP API)."""

    def _build(**overrides) -> dict:
        payload = {
            "name": "Weekly status",
            "to_emails": "ops@example.com; lead@example.com",
            "cc_emails": "",
            "subject_template": "Status {{date}}",
            "body_template": "<p>Week {{week_number}}</p>",
            "frequency_type": "weekly",
            "frequency_days": [1, 3, 5],
            "send_time": "09:00",
            "language": "en",
        }
        payload.update(overrides)
        return payload

    return _build
