"""
LeftoverSaver test fixtures

The service runs in-process against a throwaway SQLite file (aiosqlite) and an
in-memory stand-in for the Redis client.
"""
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="leftoversaver-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_DIR}/test.db")
os.environ.setdefault("METRICS_ENABLED", "false")
os.environ.setdefault("OPT_LOCK_BASE_DELAY_MS", "1")
os.environ.setdefault("OPT_LOCK_MAX_DELAY_MS", "5")
os.environ.setdefault("OPT_LOCK_JITTER_MS", "1")

import httpx
import pytest
import pytest_asyncio
from jose import jwt

from leftoversaver.core import redis_client
from leftoversaver.core.config import get_settings
from leftoversaver.db.database import AsyncSessionLocal, Base, engine
from leftoversaver.main import app
from leftoversaver.models.offer import Offer, Store
from leftoversaver.services.payment import PaymentBroker, get_payment_broker

settings = get_settings()


class InMemoryRedis:
    """Just the commands the service uses."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ex=None, nx=False):
        if nx and key in self.data:
            return None
        self.data[key] = str(value)
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def setex(self, key, ttl, value):
        self.data[key] = str(value)
        self.ttls[key] = ttl
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            removed += self.data.pop(key, None) is not None
            self.ttls.pop(key, None)
        return removed

    async def ping(self):
        return True

    async def aclose(self):
        pass


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch):
    fake = InMemoryRedis()
    monkeypatch.setattr(redis_client, "_redis_client", fake)
    return fake


@pytest_asyncio.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    # pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def broker():
    broker = PaymentBroker(timeout_seconds=2.0)
    app.dependency_overrides[get_payment_broker] = lambda: broker
    yield broker
    app.dependency_overrides.pop(get_payment_broker, None)


@pytest_asyncio.fixture
async def client(database):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def make_token(uid: str) -> str:
    return jwt.encode({"sub": uid}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def auth_headers(uid: str = "user-1") -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(uid)}"}


async def seed_offer(session, **fields) -> Offer:
    values = {
        "name": "Cafe Aroma Surprise Bag",
        "price_cents": 599,
        "currency": "EUR",
        "pickup_until": "Pickup before 8PM",
        "stock": 5,
        "owner_uid": "partner-1",
    }
    values.update(fields)
    offer = Offer(**values)
    session.add(offer)
    await session.commit()
    return offer


async def seed_store(session, **fields) -> Store:
    values = {"id": "partner-1", "address": "1 Main St", "contact": "+1 555 0100", "categories": []}
    values.update(fields)
    store = Store(**values)
    session.add(store)
    await session.commit()
    return store
