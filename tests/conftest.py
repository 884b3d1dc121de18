"""Shared fixtures for the inventory test suite."""

import os

# Must be set before inventory.app.core.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("REDIS_ENABLED", "false")

from decimal import Decimal

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from inventory.app.core.cache import InMemoryCache
from inventory.app.core.config import Settings
from inventory.app.db.async_session import build_async_engine
from inventory.app.db.base import Base
from inventory.app.db.crud.item import ItemStore
from inventory.app.db.models import Item
from inventory.app.main import create_app
from inventory.app.middleware.rate_limit import AdmissionGate, TokenBucket
from inventory.app.services.item_cache import ItemCache


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def session():
    """Fresh in-memory SQLite database per test."""
    engine = build_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as s:
        yield s
    await engine.dispose()


@pytest.fixture
def store(session):
    return ItemStore(session)


@pytest.fixture
def backend():
    return InMemoryCache()


@pytest.fixture
def item_cache(backend):
    return ItemCache(backend)


@pytest_asyncio.fixture
async def laptop(session):
    item = Item(id="1", name="Laptop", stock=10, price=Decimal("999.99"))
    session.add(item)
    await session.commit()
    return item


def make_client(gate=None, item_cache=None, **overrides):
    """Build a TestClient over a freshly created app.

    Use as a context manager so startup creates the tables.
    """
    config = Settings(**{"seed_on_startup": False, **overrides})
    app = create_app(
        config=config,
        gate=gate or AdmissionGate(TokenBucket(capacity=1000, refill_interval=1.0)),
        item_cache=item_cache or ItemCache(InMemoryCache()),
    )
    return TestClient(app)


@pytest.fixture
def client():
    with make_client() as c:
        yield c


@pytest.fixture
def auth_headers(client):
    resp = client.post("/api/v1/login", json={"username": "admin", "password": "password"})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}
