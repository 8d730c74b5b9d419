"""Tests for the cross-center reporting view."""

import logging
import uuid
from datetime import datetime, timedelta

import pytest

from app.config import settings
from app.models.center.activity import CenterActivity
from app.models.center.inventory import InventoryItem
from app.models.center.maintenance import MaintenanceRequest
from app.models.center.sale import Sale
from app.models.center.session import CenterSession
from app.models.public.global_activity import GlobalActivity
from app.services import reporting
from app.services.reporting import ReportingService, TimeRange

NOW = datetime(2025, 6, 15, 12, 0, 0)


def activity_fields(center_id: str, timestamp: datetime, **overrides) -> dict:
    fields = {
        "id": str(uuid.uuid4()),
        "center_id": center_id,
        "actor_id": f"center-{center_id}",
        "actor_name": "cairo",
        "category": "sales",
        "action": "Sold 1 x Filter",
        "description": "Sold 1 x Filter",
        "timestamp": timestamp,
    }
    fields.update(overrides)
    return fields


@pytest.mark.unit
class TestTimeRanges:

    def test_today_starts_at_midnight(self):
        assert reporting.time_range_start("today", NOW) == datetime(2025, 6, 15)

    def test_week_is_seven_days_back(self):
        assert reporting.time_range_start(TimeRange.WEEK, NOW) == NOW - timedelta(days=7)

    def test_month_starts_on_the_first(self):
        assert reporting.time_range_start("month", NOW) == datetime(2025, 6, 1)

    def test_all_is_unbounded(self):
        assert reporting.time_range_start("all", NOW) is None

    def test_limits(self):
        assert reporting.activity_limit("today") == 1000
        assert reporting.activity_limit("week") == 2000
        assert reporting.activity_limit("month") == 5000
        assert reporting.activity_limit("all") == 1000

    def test_unknown_range_is_rejected(self):
        with pytest.raises(ValueError):
            reporting.time_range_start("year", NOW)


@pytest.mark.unit
class TestDuration:

    def test_floors_to_whole_minutes(self):
        start = datetime(2025, 6, 15, 10, 0, 0)
        assert reporting.duration_minutes(start, start + timedelta(seconds=359), NOW) == 5

    def test_open_session_measured_against_now(self):
        start = NOW - timedelta(minutes=90, seconds=30)
        assert reporting.duration_minutes(start, None, NOW) == 90

    def test_never_negative(self):
        start = NOW + timedelta(minutes=5)
        assert reporting.duration_minutes(start, None, NOW) == 0


@pytest.mark.unit
@pytest.mark.asyncio
class TestLoadAllSessions:

    async def test_merges_centers_newest_first_with_stats(
        self, db_session, session_factory, center, other_center
    ):
        old = CenterSession(
            center_id=center.id, center_name=center.name,
            session_start=NOW - timedelta(hours=5),
            session_end=NOW - timedelta(hours=4),
            is_active=False, end_reason="logout",
        )
        current = CenterSession(
            center_id=other_center.id, center_name=other_center.name,
            session_start=NOW - timedelta(minutes=30), is_active=True,
        )
        db_session.add_all([old, current])
        db_session.add_all([
            CenterActivity(**activity_fields(center.id, NOW - timedelta(hours=4, minutes=30))),
            CenterActivity(**activity_fields(center.id, NOW - timedelta(hours=4, minutes=10))),
            # outside the session window
            CenterActivity(**activity_fields(center.id, NOW - timedelta(hours=2))),
            CenterActivity(**activity_fields(other_center.id, NOW - timedelta(minutes=5))),
        ])
        await db_session.commit()

        sessions = await ReportingService(session_factory).load_all_sessions(NOW)

        assert [s.id for s in sessions] == [current.id, old.id]
        assert sessions[0].duration_minutes == 30
        assert sessions[0].total_activities == 1
        assert sessions[1].duration_minutes == 60
        assert sessions[1].total_activities == 2

    async def test_caps_sessions_per_center(
        self, db_session, session_factory, center, monkeypatch
    ):
        monkeypatch.setattr(settings, "sessions_per_center", 3)
        for hours in range(1, 6):
            db_session.add(CenterSession(
                center_id=center.id, center_name=center.name,
                session_start=NOW - timedelta(hours=hours),
                session_end=NOW - timedelta(hours=hours) + timedelta(minutes=10),
                is_active=False,
            ))
        await db_session.commit()

        sessions = await ReportingService(session_factory).load_all_sessions(NOW)
        assert len(sessions) == 3
        assert sessions[0].session_start == NOW - timedelta(hours=1)

    async def test_one_failing_center_is_skipped_and_logged_once(
        self, db_session, session_factory, center_factory, monkeypatch, caplog
    ):
        centers = [
            await center_factory("Alex Center", "alex@example.com"),
            await center_factory("Aswan Center", "aswan@example.com"),
            await center_factory("Luxor Center", "luxor@example.com"),
        ]
        for c in centers:
            db_session.add(CenterSession(
                center_id=c.id, center_name=c.name,
                session_start=NOW - timedelta(hours=1), is_active=True,
            ))
        await db_session.commit()

        broken = centers[1].id
        service = ReportingService(session_factory)
        real_load = service._load_center_sessions

        async def flaky_load(center_id, now):
            if center_id == broken:
                raise RuntimeError("partition unavailable")
            return await real_load(center_id, now)

        monkeypatch.setattr(service, "_load_center_sessions", flaky_load)

        with caplog.at_level(logging.ERROR, logger="centerops.reporting"):
            sessions = await service.load_all_sessions(NOW)

        assert {s.center_id for s in sessions} == {centers[0].id, centers[2].id}
        assert service.failed_centers == [broken]
        errors = [r for r in caplog.records if r.name == "centerops.reporting"]
        assert len(errors) == 1
        assert broken in errors[0].getMessage()


@pytest.mark.unit
@pytest.mark.asyncio
class TestLoadGlobalActivities:

    @pytest.fixture
    async def seeded(self, db_session, center):
        stamps = {
            "today": NOW - timedelta(hours=1),
            "yesterday": NOW - timedelta(days=1),
            "three_days": NOW - timedelta(days=3),
            "ten_days": NOW - timedelta(days=10),
            "last_month": datetime(2025, 5, 20, 8, 0),
        }
        for label, ts in stamps.items():
            db_session.add(GlobalActivity(
                **activity_fields(center.id, ts, action=label), center_name=center.name,
            ))
        await db_session.commit()
        return stamps

    @pytest.mark.parametrize(
        "time_range, expected",
        [
            ("today", ["today"]),
            ("week", ["today", "yesterday", "three_days"]),
            ("month", ["today", "yesterday", "three_days", "ten_days"]),
            ("all", ["today", "yesterday", "three_days", "ten_days", "last_month"]),
        ],
    )
    async def test_range_bounds(self, session_factory, seeded, time_range, expected):
        items = await ReportingService(session_factory).load_global_activities(
            time_range, NOW
        )
        assert [a.action for a in items] == expected

    async def test_range_is_capped(self, session_factory, seeded, monkeypatch):
        monkeypatch.setattr(settings, "activities_limit_all", 2)
        items = await ReportingService(session_factory).load_global_activities("all", NOW)
        assert [a.action for a in items] == ["today", "yesterday"]

    async def test_unknown_center_name(self, db_session, session_factory):
        db_session.add(GlobalActivity(
            **activity_fields("ghost-center", NOW - timedelta(minutes=1)),
            center_name="Old Name",
        ))
        await db_session.commit()

        items = await ReportingService(session_factory).load_global_activities("today", NOW)
        assert items[0].center_name == "Unknown center"

    async def test_latest_activity(self, session_factory, seeded, center):
        latest = await ReportingService(session_factory).latest_activity()
        assert latest.action == "today"
        assert latest.center_name == center.name


@pytest.mark.unit
class TestSummaries:

    def _session(self, center_id, name, active, minutes, activities):
        return reporting.SessionWithStats(
            id=str(uuid.uuid4()), center_id=center_id, center_name=name,
            session_start=NOW - timedelta(minutes=minutes),
            session_end=None if active else NOW,
            is_active=active, total_activities=activities,
            duration_minutes=minutes,
        )

    def _activity(self, category, center_name, actor, description="x"):
        return reporting.ActivityWithCenter(
            **activity_fields("c", NOW, category=category, actor_name=actor,
                              description=description),
            center_name=center_name,
        )

    def test_summarize_sessions(self):
        sessions = [
            self._session("a", "Alex", True, 30, 4),
            self._session("b", "Giza", False, 90, 6),
        ]
        summary = reporting.summarize_sessions(sessions)
        assert summary.total == 2
        assert summary.active == 1
        assert summary.ended == 1
        assert summary.total_activities == 10
        assert summary.average_duration_minutes == 60.0

    def test_summarize_no_sessions(self):
        summary = reporting.summarize_sessions([])
        assert summary.total == 0
        assert summary.average_duration_minutes == 0.0

    def test_summarize_activities(self):
        summary = reporting.summarize_activities([
            self._activity("sales", "Alex", "alex"),
            self._activity("sales", "Giza", "giza"),
            self._activity("login", "Alex", "alex"),
        ])
        assert summary.total == 3
        assert summary.by_category == {"sales": 2, "login": 1}
        assert summary.by_center == {"Alex": 2, "Giza": 1}
        assert summary.by_actor == {"alex": 2, "giza": 1}

    def test_filter_sessions(self):
        sessions = [
            self._session("a", "Alex Center", True, 30, 0),
            self._session("b", "Giza Center", False, 90, 0),
        ]
        assert len(reporting.filter_sessions(sessions, status="active")) == 1
        assert len(reporting.filter_sessions(sessions, status="ended")) == 1
        assert reporting.filter_sessions(sessions, search="giza")[0].center_id == "b"
        assert reporting.filter_sessions(sessions, center_id="a")[0].center_name == "Alex Center"
        assert len(reporting.filter_sessions(sessions, start_date=NOW)) == 2
        assert reporting.filter_sessions(sessions, start_date=NOW - timedelta(days=1)) == []

    def test_filter_activities(self):
        activities = [
            self._activity("sales", "Alex", "alex", "Sold 2 x Filter"),
            self._activity("maintenance", "Giza", "omar", "Repaired pump"),
        ]
        assert len(reporting.filter_activities(activities, category="all")) == 2
        assert reporting.filter_activities(activities, category="sales")[0].actor_name == "alex"
        assert reporting.filter_activities(activities, search="PUMP")[0].category == "maintenance"
        assert reporting.filter_activities(activities, search="omar")[0].center_name == "Giza"


@pytest.mark.unit
class TestCenterStatistics:

    def _request(self, status, technician=None, customer="Omar", parts=None, days_ago=0):
        return MaintenanceRequest(
            center_id="c", customer_name=customer, device_type="Pump",
            description="Noisy", status=status, technician_id=technician,
            parts=parts or [], created_at=NOW - timedelta(days=days_ago),
        )

    def test_maintenance_stats(self):
        stats = reporting.maintenance_stats([
            self._request("completed", "t1", parts=[
                {"item_id": "i1", "item_name": "Seal", "quantity": 2, "unit_price": 5},
            ]),
            self._request("pending", "t1", customer="Sara"),
            self._request("in-progress", "t2"),
            self._request("cancelled"),
        ])
        assert stats.total == 4
        assert stats.completed == 1
        assert stats.pending == 1
        assert stats.completion_rate == 25.0
        assert stats.by_technician["t1"].completed == 1
        assert stats.by_technician["t1"].pending == 1
        assert stats.by_technician["t2"].in_progress == 1
        assert stats.by_technician["unassigned"].cancelled == 1
        assert stats.by_customer == {"Omar": 3, "Sara": 1}
        assert stats.parts_used == {"Seal": 2}

    def test_empty_maintenance_stats(self):
        stats = reporting.maintenance_stats([])
        assert stats.total == 0
        assert stats.completion_rate == 0.0

    def test_in_period_counts_whole_days(self):
        assert reporting.in_period(NOW - timedelta(days=7, hours=23), "week", NOW)
        assert not reporting.in_period(NOW - timedelta(days=8), "week", NOW)
        assert reporting.in_period(NOW - timedelta(days=30), "month", NOW)
        assert not reporting.in_period(NOW - timedelta(days=366), "year", NOW)
        assert reporting.in_period(datetime(2000, 1, 1), "all", NOW)

    def test_center_report(self):
        items = [
            InventoryItem(center_id="c", name="Seal", quantity=3, price=5),
            InventoryItem(center_id="c", name="Pump", quantity=10, price=100),
            InventoryItem(center_id="c", name="Valve", quantity=0, price=20),
        ]
        sales = [
            Sale(center_id="c", item_id="i", item_name="Pump", quantity=1,
                 total_price=100, customer_name="A", customer_phone="1",
                 date=NOW - timedelta(days=2)),
            Sale(center_id="c", item_id="i", item_name="Pump", quantity=2,
                 total_price=200, customer_name="B", customer_phone="2",
                 date=NOW - timedelta(days=40)),
        ]
        requests = [
            self._request("completed", days_ago=1),
            self._request("pending", days_ago=60),
        ]

        month = reporting.center_report("c", "Cairo", items, sales, requests, "month", NOW)
        assert month.totals.items == 3
        assert month.totals.low_stock_items == 2
        assert month.totals.sales == 1
        assert month.totals.revenue == 100
        assert month.totals.maintenance == 1
        assert month.maintenance.completion_rate == 100.0

        everything = reporting.center_report("c", "Cairo", items, sales, requests, "all", NOW)
        assert everything.totals.sales == 2
        assert everything.totals.revenue == 300
        assert everything.totals.maintenance == 2
