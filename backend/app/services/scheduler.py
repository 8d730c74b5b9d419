"""Background task scheduler: periodic maintenance for all centers.

Uses FastAPI's lifespan context to start/stop an asyncio background loop.
No external dependencies (no Celery, no APScheduler): just an
asyncio.sleep loop that fires every `reconciliation_interval_minutes`.

Each tick:
    1. repairs activity mirrors (app.services.reconciliation)
    2. closes sessions open longer than `session_max_hours`

Configuration (.env):
    SCHEDULER_ENABLED=true
    RECONCILIATION_INTERVAL_MINUTES=15
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import settings
from app.database import async_session
from app.services.activity_logger import ActivityLogger
from app.services.reconciliation import reconcile_activity_mirrors
from app.services.sessions import SessionManager
from app.utils.redis_client import close_redis

logger = logging.getLogger("centerops.scheduler")


async def run_maintenance_tick(session_factory=None) -> dict:
    """One pass of every periodic job. A failing job does not stop the next."""
    session_factory = session_factory or async_session
    summary: dict = {"reconciliation": None, "expired_sessions": None}

    try:
        summary["reconciliation"] = await reconcile_activity_mirrors(session_factory)
    except Exception:
        logger.exception("Activity mirror reconciliation failed")

    try:
        async with session_factory() as db:
            manager = SessionManager(db, ActivityLogger(session_factory))
            summary["expired_sessions"] = await manager.expire_stale_sessions()
    except Exception:
        logger.exception("Stale session expiry failed")

    return summary


async def _scheduler_loop() -> None:
    interval = settings.reconciliation_interval_minutes * 60

    while True:
        await asyncio.sleep(interval)
        try:
            await run_maintenance_tick()
        except Exception:
            logger.exception("Unhandled error in scheduler tick")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan: start the scheduler on startup, cancel on shutdown."""
    task = None
    if settings.scheduler_enabled:
        task = asyncio.create_task(_scheduler_loop())
        logger.info(
            "Scheduler started (every %d min)",
            settings.reconciliation_interval_minutes,
        )
    try:
        yield
    finally:
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Scheduler stopped")
        await close_redis()
