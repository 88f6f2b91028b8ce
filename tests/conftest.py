"""Shared fixtures: in-memory SQLite database, fake Redis and an ASGI client."""

import os

# Settings are read once at import time, so configure them before importing app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ADMIN_API_TOKEN"] = "test-admin-token"
os.environ["USE_LOCAL_AI"] = "true"
os.environ["OPENROUTER_API_KEY"] = ""
os.environ["RESEND_API_KEY"] = ""
os.environ["AI_MEMORY_DIR"] = "tests/_no_ai_memory"

from httpx import ASGITransport, AsyncClient
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import get_db
from app.main import app
from app.models.base import Base
from app.redis_client import get_redis


ADMIN_HEADERS = {"X-Admin-Token": "test-admin-token"}


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the distributed lock."""

    def __init__(self):
        self.store: dict[str, str] = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    async def get(self, key):
        return self.store.get(key)

    def register_script(self, script):
        async def release(keys, args):
            if self.store.get(keys[0]) == args[0]:
                del self.store[keys[0]]
                return 1
            return 0

        return release

    async def close(self):
        pass


@pytest_asyncio.fixture(scope="function")
async def async_engine():
    """Create a fresh in-memory database for each test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(async_engine):
    session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_maker() as session:
        yield session


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest_asyncio.fixture(scope="function")
async def client(db_session, fake_redis):
    """ASGI test client sharing the test session."""

    async def override_get_db():
        yield db_session

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def booking_payload(**overrides) -> dict:
    """A customer checkout as the booking page posts it."""
    payload = {
        "name": "Asha Verma",
        "email": "Asha@Example.com",
        "phone": "9876543210",
        "theaterName": "Lavish Theater",
        "date": "2030-01-15",
        "time": "4:00 PM - 7:00 PM",
        "occasion": "Birthday",
        "numberOfPeople": 4,
        "totalAmount": 2000,
        "advancePayment": 600,
        "pricingData": {"extraGuestFee": 400},
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_booking(client):
    """Create a booking through the API and return the response body."""

    async def _make(**overrides) -> dict:
        response = await client.post("/api/booking", json=booking_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()

    return _make
