"""Pytest configuration and fixtures for CenterOps tests.

Provides reusable test fixtures for database, authentication, Redis, etc.
Every test gets a fresh in-memory SQLite database and an in-process
stand-in for Redis, so the suite needs no external services.
"""

import os
import time
from typing import AsyncGenerator

# Configure before the app (and its settings) are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("DEBUG", "false")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.jwt import create_access_token
from app.auth.password import hash_password
from app.auth.permissions import resolve_permissions
from app.auth.principal import ADMIN_SUBJECT, Principal, center_subject
from app.config import settings
from app.database import Base, get_db, get_session_factory
from app.main import app
from app.models.public.center import Center
from app.services.activity_logger import ActivityLogger
from app.utils import redis_client as redis_module

CENTER_PASSWORD = "center-pass-123"
ADMIN_PASSWORD = "admin-pass-123"


# ── Redis stand-in ───────────────────────────────────────────────

class FakeRedis:
    """The subset of redis.asyncio.Redis the app uses, kept in dicts."""

    def __init__(self):
        self.values: dict[str, tuple[str, float | None]] = {}
        self.zsets: dict[str, dict[str, float]] = {}

    def _alive(self, key: str) -> bool:
        entry = self.values.get(key)
        if entry is None:
            return False
        if entry[1] is not None and entry[1] <= time.time():
            del self.values[key]
            return False
        return True

    async def ping(self):
        return True

    async def setex(self, key, ttl, value):
        self.values[key] = (str(value), time.time() + int(ttl))
        return True

    async def get(self, key):
        return self.values[key][0] if self._alive(key) else None

    async def exists(self, *keys):
        return sum(1 for k in keys if self._alive(k) or k in self.zsets)

    async def delete(self, *keys):
        removed = 0
        for k in keys:
            removed += int(self.values.pop(k, None) is not None)
            removed += int(self.zsets.pop(k, None) is not None)
        return removed

    async def expire(self, key, ttl):
        return True

    async def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    async def zcard(self, key):
        return len(self.zsets.get(key, {}))

    async def zremrangebyscore(self, key, low, high):
        zset = self.zsets.get(key, {})
        stale = [m for m, score in zset.items() if low <= score <= high]
        for m in stale:
            del zset[m]
        return len(stale)

    async def zrange(self, key, start, end, withscores=False):
        items = sorted(self.zsets.get(key, {}).items(), key=lambda kv: kv[1])
        items = items[start:] if end == -1 else items[start:end + 1]
        return items if withscores else [m for m, _ in items]

    async def aclose(self):
        return None


@pytest.fixture(autouse=True)
def fake_redis(monkeypatch) -> FakeRedis:
    fake = FakeRedis()
    monkeypatch.setattr(redis_module, "_redis_client", fake)
    return fake


@pytest.fixture(autouse=True)
def admin_password(monkeypatch):
    monkeypatch.setattr(settings, "admin_password_hash", hash_password(ADMIN_PASSWORD))


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def activity_logger(session_factory) -> ActivityLogger:
    return ActivityLogger(session_factory)


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with overridden database dependencies."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

async def make_center(
    db: AsyncSession, name: str, email: str, password: str = CENTER_PASSWORD
) -> Center:
    center = Center(name=name, email=email, hashed_password=hash_password(password))
    db.add(center)
    await db.commit()
    return center


@pytest_asyncio.fixture
async def center(db_session: AsyncSession) -> Center:
    return await make_center(db_session, "Cairo Center", "cairo@example.com")


@pytest_asyncio.fixture
async def other_center(db_session: AsyncSession) -> Center:
    return await make_center(db_session, "Giza Center", "giza@example.com")


def center_principal(center: Center) -> Principal:
    return Principal(
        subject=center_subject(center.id),
        role="center",
        permissions=tuple(resolve_permissions("center")),
        email=center.email,
        center_id=center.id,
        center_name=center.name,
    )


def token_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def center_token(center: Center) -> str:
    return create_access_token(
        center_subject(center.id),
        "center",
        resolve_permissions("center"),
        center_id=center.id,
        center_name=center.name,
        email=center.email,
    )


@pytest.fixture
def center_headers(center: Center) -> dict:
    """Bearer headers for the `center` fixture (no session opened)."""
    return token_headers(center_token(center))


@pytest.fixture
def other_center_headers(other_center: Center) -> dict:
    return token_headers(center_token(other_center))


@pytest.fixture
def admin_headers() -> dict:
    token = create_access_token(ADMIN_SUBJECT, "admin", resolve_permissions("admin"))
    return token_headers(token)


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "api: HTTP API tests")
    config.addinivalue_line("markers", "auth: Authentication tests")


# ── Helper fixtures ──────────────────────────────────────────────

@pytest.fixture
def principal(center: Center) -> Principal:
    return center_principal(center)


@pytest.fixture
def principal_for():
    return center_principal


@pytest.fixture
def center_factory(db_session: AsyncSession):
    async def _make(name: str, email: str) -> Center:
        return await make_center(db_session, name, email)
    return _make
