"""
Shared fixtures: in-memory SQLite database, fixed clock, recording event bus and small factories.
"""

import os

# Settings are read once at import time, so the environment must be in place first
os.environ.setdefault("APP_ENV", "testing")
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SALON_API_KEY"] = "test_api_key"
os.environ["REMINDERS_ENABLED"] = "false"
os.environ["NOTIFICATION_WEBHOOK_URL"] = ""

from datetime import datetime, time as dtime, timedelta
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import salonbook.db.base  # registers models
from salonbook.core.business import BusinessHours, SchedulingConfig
from salonbook.crud.appointment import get_appointment
from salonbook.db.models.appointment import Appointment, AppointmentStatus
from salonbook.db.models.service import Service
from salonbook.db.models.user import User
from salonbook.db.session import Base
from salonbook.services.appointments import AppointmentService
from salonbook.services.availability import AvailabilityEngine
from salonbook.services.events import EventBus

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
API_KEY = "test_api_key"

# Monday
MONDAY = datetime(2024, 1, 15)


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class RecordingBus(EventBus):
    """EventBus that also keeps every published envelope for assertions."""

    def __init__(self, maxsize: int = 100):
        super().__init__(maxsize=maxsize)
        self.published: list[dict] = []

    def publish(self, event_type: str, data: dict):
        event = super().publish(event_type, data)
        if event is not None:
            self.published.append(event)
        return event

    def types(self) -> list[str]:
        return [e["event_type"] for e in self.published]


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FixedClock(MONDAY.replace(hour=8))


@pytest.fixture
def config():
    return SchedulingConfig(
        hours=BusinessHours(opens=dtime(9, 0), closes=dtime(18, 0), closed_weekdays=frozenset({7})),
        tz=ZoneInfo("Europe/Paris"),
    )


@pytest.fixture
def bus():
    return RecordingBus()


@pytest.fixture
def engine_svc(db, config):
    return AvailabilityEngine(db, config)


@pytest.fixture
def appointments(db, config, bus, clock):
    return AppointmentService(db, config=config, bus=bus, clock=clock)


@pytest.fixture
def make_service(db):
    async def _make(name="Haircut", duration_minutes=60, active=True, price="30.00"):
        service = Service(name=name, price=Decimal(price), duration_minutes=duration_minutes, active=active)
        db.add(service)
        await db.commit()
        await db.refresh(service)
        return service
    return _make


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    async def _make(full_name="Jane Doe", email=None, mobile="+33612345678"):
        counter["n"] += 1
        user = User(full_name=full_name, email=email or f"client{counter['n']}@example.com", mobile=mobile)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user
    return _make


@pytest.fixture
def book(db):
    """Insert an appointment row directly, bypassing the availability checks."""
    async def _book(user, service, starts_at, status=AppointmentStatus.CONFIRMED, minutes=None):
        ends_at = starts_at + timedelta(minutes=minutes or service.duration_minutes)
        appt = Appointment(
            user_id=user.id,
            service_id=service.id,
            starts_at=starts_at,
            ends_at=ends_at,
            status=status.value,
            created_at=starts_at - timedelta(days=1),
            updated_at=starts_at - timedelta(days=1),
        )
        db.add(appt)
        await db.commit()
        return await get_appointment(db, appt.id)
    return _book


def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Pure unit tests with no database")
    config.addinivalue_line("markers", "essential: Core booking behaviour")
    config.addinivalue_line("markers", "integration: HTTP-level tests through the FastAPI app")
