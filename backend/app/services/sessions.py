"""Session manager: open/close/query the per-center usage sessions.

State machine per record: Open → Closed. A closed session is never
reopened; starting again always creates a fresh record.

At most one open session per center is enforced by the partial unique
index on `center_sessions`. When two starts race, the loser's insert is
rejected inside a SAVEPOINT and it returns the winner's session
instead, leaving the rest of the caller's transaction intact.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.principal import Principal, system_principal
from app.config import settings
from app.database import get_db, utcnow
from app.middleware.exceptions import ResourceNotFoundError, SessionStateError
from app.models.center.activity import ActivityCategory
from app.models.center.session import CenterSession
from app.models.public.center import Center
from app.services.activity_logger import ActivityLogger, get_activity_logger

logger = logging.getLogger(__name__)

END_REASONS = {"logout", "manual", "expired"}


class SessionManager:
    def __init__(self, db: AsyncSession, activity_logger: ActivityLogger):
        self.db = db
        self.activity_logger = activity_logger

    # ── Queries ─────────────────────────────────────────────

    async def get_active_session(self, center_id: str) -> CenterSession | None:
        result = await self.db.execute(
            select(CenterSession)
            .where(
                CenterSession.center_id == center_id,
                CenterSession.is_active == True,  # noqa: E712
            )
            .order_by(CenterSession.session_start.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_session(self, session_id: str, center_id: str) -> CenterSession:
        result = await self.db.execute(
            select(CenterSession).where(
                CenterSession.id == session_id,
                CenterSession.center_id == center_id,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise ResourceNotFoundError("Session", session_id)
        return record

    async def list_center_sessions(
        self, center_id: str, limit: int = 50
    ) -> list[CenterSession]:
        result = await self.db.execute(
            select(CenterSession)
            .where(CenterSession.center_id == center_id)
            .order_by(CenterSession.session_start.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    # ── Transitions ─────────────────────────────────────────

    async def start_session(
        self, center_id: str, principal: Principal | None = None
    ) -> CenterSession:
        """Open a session for `center_id` and log the login."""
        record, _ = await self._open_session(center_id, principal)
        return record

    async def _open_session(
        self, center_id: str, principal: Principal | None
    ) -> tuple[CenterSession, bool]:
        center = await self.db.get(Center, center_id)
        if center is None:
            raise ResourceNotFoundError("Center", center_id)
        center_name = center.name

        record = CenterSession(
            center_id=center_id,
            center_name=center_name,
            session_start=utcnow(),
            is_active=True,
            opened_by=principal.actor_id if principal else None,
        )
        try:
            async with self.db.begin_nested():
                self.db.add(record)
        except IntegrityError:
            existing = await self.get_active_session(center_id)
            if existing is None:
                raise
            logger.warning(
                "Concurrent session start for center %s; reusing session %s",
                center_id, existing.id,
            )
            return existing, False
        await self.db.commit()

        actor = self._actor(principal, center_id, center_name)
        await self.activity_logger.log(
            actor,
            ActivityCategory.LOGIN,
            "Session started",
            target_id=record.id,
            details={"event": "session_start", "session_id": record.id},
            timestamp=record.session_start,
        )
        logger.info("Session %s opened for center %s", record.id, center_id)
        return record, True

    async def end_session(
        self,
        session_id: str,
        center_id: str,
        principal: Principal | None = None,
        reason: str = "manual",
    ) -> CenterSession:
        """Close an open session and log the logout."""
        if reason not in END_REASONS:
            raise ValueError(f"Unknown end reason: {reason!r}")

        record = await self.get_session(session_id, center_id)
        if not record.is_active:
            raise SessionStateError(f"Session {session_id} is already closed")

        now = utcnow()
        record.session_end = max(now, record.session_start)
        record.is_active = False
        record.end_reason = reason
        record.closed_by = principal.actor_id if principal else None
        await self.db.commit()

        actor = self._actor(principal, center_id, record.center_name)
        await self.activity_logger.log(
            actor,
            ActivityCategory.LOGOUT,
            "Session expired" if reason == "expired" else "Session ended",
            target_id=record.id,
            details={
                "event": "session_end",
                "session_id": record.id,
                "reason": reason,
            },
            timestamp=record.session_end,
        )
        logger.info(
            "Session %s closed for center %s (%s)", record.id, center_id, reason
        )
        return record

    async def ensure_session(
        self, center_id: str, principal: Principal | None = None
    ) -> tuple[CenterSession, bool]:
        """Return the open session for a center, starting one if absent.

        Returns (session, created). A failed lookup is logged and treated
        as "no session"; the unique index stops that from opening a second
        session when one already exists.
        """
        try:
            async with self.db.begin_nested():
                active = await self.get_active_session(center_id)
        except SQLAlchemyError:
            logger.exception("Active session lookup failed for center %s", center_id)
            active = None

        if active is not None:
            return active, False

        return await self._open_session(center_id, principal)

    async def expire_stale_sessions(
        self,
        now: datetime | None = None,
        max_age: timedelta | None = None,
    ) -> int:
        """Close sessions left open longer than `max_age`. Returns the count."""
        now = now or utcnow()
        max_age = max_age or timedelta(hours=settings.session_max_hours)
        cutoff = now - max_age

        result = await self.db.execute(
            select(CenterSession.id, CenterSession.center_id).where(
                CenterSession.is_active == True,  # noqa: E712
                CenterSession.session_start < cutoff,
            )
        )
        stale = result.all()

        closed = 0
        for session_id, center_id in stale:
            try:
                await self.end_session(session_id, center_id, reason="expired")
                closed += 1
            except SessionStateError:
                # Closed by the user between the scan and now
                continue
        if closed:
            logger.info("Expired %d stale sessions", closed)
        return closed

    @staticmethod
    def _actor(
        principal: Principal | None, center_id: str, center_name: str
    ) -> Principal:
        if principal is None:
            return system_principal(center_id, center_name)
        if principal.center_id != center_id:
            return principal.scoped_to(center_id, center_name)
        return principal


def get_session_manager(
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
) -> SessionManager:
    return SessionManager(db, activity_logger)
