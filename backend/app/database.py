"""Database engine, session factory, and declarative base.

One DeclarativeBase for every table. Center scoping is done with a
`center_id` column on each center-owned table rather than a schema per
center, so the same models run on PostgreSQL and SQLite.

Session dependency for FastAPI:
  - get_db()  → one transaction per request, committed on success
"""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

_engine_kwargs: dict = {"echo": settings.debug}
if settings.database_url.startswith("postgresql"):
    _engine_kwargs.update(pool_size=20, max_overflow=10)

engine = create_async_engine(settings.database_url, **_engine_kwargs)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Naive UTC timestamp, the format every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a session; commit when the request handler returns."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_session_factory() -> async_sessionmaker:
    """Factory used by services that open their own short transactions.

    The activity logger and the reporting view each need independent
    sessions (one per write, one per center); tests override this
    dependency with a factory bound to their own engine.
    """
    return async_session
