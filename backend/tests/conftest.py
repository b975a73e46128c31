import os
from datetime import datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

# Settings require a URL at import time; every test builds its own database below.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./reservations-test.db")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from backend.app.db.models import Base
from backend.app.db.session import build_engine, build_sessionmaker, get_session
from backend.app.main import app
from backend.app.services.validation import BookingPolicy


# A Sunday. 2026-10-20 is a Tuesday, 2026-10-21 a Wednesday.
NOW = datetime(2026, 10, 18, 16, 0, tzinfo=timezone.utc)
OPEN_DAY = "2026-10-21"
CLOSED_DAY = "2026-10-20"


def reservation_payload(**overrides):
    payload = {
        "first_name": "Ann",
        "last_name": "Lee",
        "mobile_number": "555-0100",
        "reservation_date": OPEN_DAY,
        "reservation_time": "18:00",
        "people": 4,
    }
    payload.update(overrides)
    return payload


def upcoming_open_day(policy: BookingPolicy) -> str:
    """A date a week out on a day the restaurant is open, relative to the real clock."""
    day = datetime.now(policy.timezone).date() + timedelta(days=7)
    while day.weekday() == policy.closed_weekday:
        day += timedelta(days=1)
    return day.isoformat()


def upcoming_closed_day(policy: BookingPolicy) -> str:
    day = datetime.now(policy.timezone).date() + timedelta(days=7)
    while day.weekday() != policy.closed_weekday:
        day += timedelta(days=1)
    return day.isoformat()


@pytest.fixture
def policy() -> BookingPolicy:
    return BookingPolicy(
        timezone=ZoneInfo("America/New_York"),
        closed_weekday=1,
        opening_time=time(10, 30),
        last_seating_time=time(21, 30),
    )


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'reservations.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
