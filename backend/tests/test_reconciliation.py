"""Activity mirror reconciliation tests."""

import logging
import uuid
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from app.database import utcnow
from app.models.center.activity import CenterActivity
from app.models.center.session import CenterSession
from app.models.public.global_activity import GlobalActivity
from app.services import scheduler
from app.services.reconciliation import reconcile_activity_mirrors
from app.services.scheduler import run_maintenance_tick

STAMP = datetime(2025, 6, 15, 9, 30)


def record(center_id: str, **overrides) -> dict:
    fields = {
        "id": str(uuid.uuid4()),
        "center_id": center_id,
        "actor_id": f"center-{center_id}",
        "actor_name": "cairo",
        "category": "inventory",
        "action": "Added item Filter",
        "description": "Added item Filter",
        "target_id": None,
        "target_name": "Filter",
        "details": {"new": {"name": "Filter", "quantity": 4}},
        "timestamp": STAMP,
    }
    fields.update(overrides)
    return fields


async def count(db, model) -> int:
    return await db.scalar(select(func.count(model.id)))


@pytest.mark.unit
@pytest.mark.asyncio
class TestReconcileMirrors:

    async def test_consistent_store_is_untouched(
        self, db_session, session_factory, activity_logger, center, principal
    ):
        await activity_logger.log(principal, "login", "Logged in")

        summary = await reconcile_activity_mirrors(session_factory)

        assert summary == {"missing_global": 0, "missing_local": 0, "orphans": 0}
        assert await count(db_session, CenterActivity) == 1
        assert await count(db_session, GlobalActivity) == 1

    async def test_copies_center_row_to_global(
        self, db_session, session_factory, center, caplog
    ):
        fields = record(center.id)
        db_session.add(CenterActivity(**fields))
        await db_session.commit()

        with caplog.at_level(logging.WARNING, logger="centerops.reconciliation"):
            summary = await reconcile_activity_mirrors(session_factory)

        assert summary["missing_global"] == 1
        mirror = await db_session.get(GlobalActivity, fields["id"])
        assert mirror is not None
        assert mirror.center_name == center.name
        assert mirror.timestamp == STAMP
        assert mirror.details == fields["details"]
        assert "Repaired activity mirrors" in caplog.text

    async def test_copies_global_row_to_center(
        self, db_session, session_factory, center
    ):
        fields = record(center.id, category="sales", action="Sold 2 x Filter")
        db_session.add(GlobalActivity(**fields, center_name=center.name))
        await db_session.commit()

        summary = await reconcile_activity_mirrors(session_factory)

        assert summary["missing_local"] == 1
        local = await db_session.get(CenterActivity, fields["id"])
        assert local is not None
        assert local.category == "sales"
        assert local.actor_name == "cairo"

    async def test_orphans_are_reported_not_copied(
        self, db_session, session_factory, center
    ):
        db_session.add(GlobalActivity(**record("closed-center"), center_name="Closed"))
        await db_session.commit()

        summary = await reconcile_activity_mirrors(session_factory)

        assert summary == {"missing_global": 0, "missing_local": 0, "orphans": 1}
        assert await count(db_session, CenterActivity) == 0

    async def test_second_run_finds_nothing(
        self, db_session, session_factory, center, other_center
    ):
        db_session.add_all([
            CenterActivity(**record(center.id)),
            CenterActivity(**record(other_center.id, timestamp=STAMP - timedelta(days=1))),
            GlobalActivity(**record(center.id), center_name=center.name),
        ])
        await db_session.commit()

        first = await reconcile_activity_mirrors(session_factory)
        second = await reconcile_activity_mirrors(session_factory)

        assert first["missing_global"] == 2
        assert first["missing_local"] == 1
        assert second == {"missing_global": 0, "missing_local": 0, "orphans": 0}
        assert await count(db_session, CenterActivity) == 3
        assert await count(db_session, GlobalActivity) == 3


@pytest.mark.api
@pytest.mark.asyncio
class TestReconcileEndpoint:
    """The manual trigger is admin-only."""

    async def test_requires_auth(self, client: AsyncClient):
        resp = await client.post("/api/admin/reconcile")
        assert resp.status_code == 401

    async def test_center_login_is_forbidden(
        self, client: AsyncClient, center_headers
    ):
        resp = await client.post("/api/admin/reconcile", headers=center_headers)
        assert resp.status_code == 403

    async def test_admin_runs_reconciliation(
        self, client: AsyncClient, admin_headers, db_session, center
    ):
        db_session.add(CenterActivity(**record(center.id)))
        await db_session.commit()

        resp = await client.post("/api/admin/reconcile", headers=admin_headers)

        assert resp.status_code == 200
        assert resp.json() == {"missing_global": 1, "missing_local": 0, "orphans": 0}


@pytest.mark.unit
@pytest.mark.asyncio
class TestMaintenanceTick:

    async def _stale_session(self, db_session, center):
        db_session.add(CenterSession(
            center_id=center.id, center_name=center.name,
            session_start=utcnow() - timedelta(hours=30), is_active=True,
        ))
        await db_session.commit()

    async def test_tick_repairs_and_expires(self, db_session, session_factory, center):
        db_session.add(CenterActivity(**record(center.id)))
        await self._stale_session(db_session, center)

        summary = await run_maintenance_tick(session_factory)

        assert summary["reconciliation"]["missing_global"] == 1
        assert summary["expired_sessions"] == 1

    async def test_failed_job_does_not_stop_the_next(
        self, db_session, session_factory, center, monkeypatch, caplog
    ):
        await self._stale_session(db_session, center)

        async def broken(session_factory=None):
            raise RuntimeError("boom")

        monkeypatch.setattr(scheduler, "reconcile_activity_mirrors", broken)
        with caplog.at_level(logging.ERROR, logger="centerops.scheduler"):
            summary = await run_maintenance_tick(session_factory)

        assert summary == {"reconciliation": None, "expired_sessions": 1}
        assert "reconciliation failed" in caplog.text
