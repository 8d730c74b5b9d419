"""Tests for the center session manager."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.database import utcnow
from app.middleware.exceptions import ResourceNotFoundError, SessionStateError
from app.models.center.activity import CenterActivity
from app.models.center.session import CenterSession
from app.services.sessions import SessionManager


async def active_count(session_factory, center_id: str) -> int:
    async with session_factory() as db:
        return await db.scalar(
            select(func.count(CenterSession.id)).where(
                CenterSession.center_id == center_id,
                CenterSession.is_active == True,  # noqa: E712
            )
        )


@pytest.mark.unit
@pytest.mark.asyncio
class TestSessionLifecycle:

    async def test_start_opens_session_and_logs_login(
        self, db_session, activity_logger, session_factory, center, principal
    ):
        manager = SessionManager(db_session, activity_logger)
        session = await manager.start_session(center.id, principal)

        assert session.is_active is True
        assert session.center_name == "Cairo Center"
        assert session.session_end is None
        assert session.opened_by == principal.actor_id

        async with session_factory() as db:
            logged = (await db.execute(select(CenterActivity))).scalars().all()
        assert [a.category for a in logged] == ["login"]
        assert logged[0].details["session_id"] == session.id

    async def test_start_for_unknown_center_is_404(self, db_session, activity_logger):
        manager = SessionManager(db_session, activity_logger)
        with pytest.raises(ResourceNotFoundError):
            await manager.start_session("no-such-center")

    async def test_end_closes_session_and_logs_logout(
        self, db_session, activity_logger, session_factory, center, principal
    ):
        manager = SessionManager(db_session, activity_logger)
        session = await manager.start_session(center.id, principal)
        ended = await manager.end_session(session.id, center.id, principal, reason="logout")

        assert ended.is_active is False
        assert ended.end_reason == "logout"
        assert ended.session_end >= ended.session_start
        assert await manager.get_active_session(center.id) is None

        async with session_factory() as db:
            categories = (await db.execute(
                select(CenterActivity.category).order_by(
                    CenterActivity.timestamp, CenterActivity.category
                )
            )).scalars().all()
        assert categories == ["login", "logout"]

    async def test_closed_session_is_never_reopened(
        self, db_session, activity_logger, center, principal
    ):
        manager = SessionManager(db_session, activity_logger)
        first = await manager.start_session(center.id, principal)
        await manager.end_session(first.id, center.id, principal)

        with pytest.raises(SessionStateError):
            await manager.end_session(first.id, center.id, principal)

        second = await manager.start_session(center.id, principal)
        assert second.id != first.id
        assert second.is_active is True

    async def test_end_unknown_session_is_404(
        self, db_session, activity_logger, center
    ):
        manager = SessionManager(db_session, activity_logger)
        with pytest.raises(ResourceNotFoundError):
            await manager.end_session("missing", center.id)

    async def test_end_rejects_unknown_reason(
        self, db_session, activity_logger, center, principal
    ):
        manager = SessionManager(db_session, activity_logger)
        session = await manager.start_session(center.id, principal)
        with pytest.raises(ValueError):
            await manager.end_session(session.id, center.id, principal, reason="crash")

    async def test_session_is_scoped_to_its_center(
        self, db_session, activity_logger, center, other_center, principal
    ):
        manager = SessionManager(db_session, activity_logger)
        session = await manager.start_session(center.id, principal)
        with pytest.raises(ResourceNotFoundError):
            await manager.end_session(session.id, other_center.id)


@pytest.mark.unit
@pytest.mark.asyncio
class TestOneActiveSessionPerCenter:

    async def test_serial_ensure_reuses_open_session(
        self, db_session, activity_logger, session_factory, center, principal
    ):
        manager = SessionManager(db_session, activity_logger)
        first, created_first = await manager.ensure_session(center.id, principal)
        second, created_second = await manager.ensure_session(center.id, principal)

        assert created_first is True
        assert created_second is False
        assert first.id == second.id
        assert await active_count(session_factory, center.id) == 1

    async def test_racing_start_returns_the_winner(
        self, session_factory, activity_logger, center, principal
    ):
        """Two managers on separate DB sessions both try to open a session."""
        async with session_factory() as db_a, session_factory() as db_b:
            winner = await SessionManager(db_a, activity_logger).start_session(
                center.id, principal
            )
            loser = await SessionManager(db_b, activity_logger).start_session(
                center.id, principal
            )

        assert loser.id == winner.id
        assert await active_count(session_factory, center.id) == 1

    async def test_failed_lookup_does_not_open_a_second_session(
        self, db_session, activity_logger, session_factory, center, principal,
        monkeypatch,
    ):
        manager = SessionManager(db_session, activity_logger)
        existing, _ = await manager.ensure_session(center.id, principal)

        real_lookup = SessionManager.get_active_session
        calls = {"n": 0}

        async def flaky_lookup(self, center_id):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OperationalError("SELECT", {}, Exception("store unavailable"))
            return await real_lookup(self, center_id)

        monkeypatch.setattr(SessionManager, "get_active_session", flaky_lookup)
        session, created = await manager.ensure_session(center.id, principal)

        assert created is False
        assert session.id == existing.id
        assert await active_count(session_factory, center.id) == 1
        # objects loaded before the lost insert are still usable
        assert center.name == "Cairo Center"

    async def test_centers_have_independent_sessions(
        self, db_session, activity_logger, center, other_center, principal,
        principal_for,
    ):
        manager = SessionManager(db_session, activity_logger)
        a = await manager.start_session(center.id, principal)
        b = await manager.start_session(other_center.id, principal_for(other_center))
        assert a.id != b.id
        assert a.is_active and b.is_active


@pytest.mark.unit
@pytest.mark.asyncio
class TestSessionExpiry:

    async def test_expires_sessions_older_than_max_age(
        self, db_session, activity_logger, session_factory, center, other_center,
        principal, principal_for,
    ):
        manager = SessionManager(db_session, activity_logger)
        stale = await manager.start_session(center.id, principal)
        fresh = await manager.start_session(other_center.id, principal_for(other_center))

        stale.session_start = utcnow() - timedelta(hours=30)
        await db_session.commit()

        closed = await manager.expire_stale_sessions(max_age=timedelta(hours=24))

        assert closed == 1
        async with session_factory() as db:
            stale_row = await db.get(CenterSession, stale.id)
            fresh_row = await db.get(CenterSession, fresh.id)
            logout = await db.scalar(
                select(CenterActivity).where(
                    CenterActivity.center_id == center.id,
                    CenterActivity.category == "logout",
                )
            )
        assert stale_row.is_active is False
        assert stale_row.end_reason == "expired"
        assert stale_row.closed_by is None
        assert fresh_row.is_active is True
        assert logout.actor_name == "System"
        assert logout.action == "Session expired"
