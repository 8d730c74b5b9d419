"""Cross-center reporting: the admin dashboard's read side.

Two loaders read the store:
  - load_all_sessions()       every center's recent sessions with stats
  - load_global_activities()  the global activity mirror for a time range

Everything else in this module is a pure function over what those loaders
return (summaries, filters, maintenance and center statistics), computed
with a linear scan.

The session loader visits centers one after another and reads each in its
own DB session. A failing center is logged once and skipped; the others
are still returned.
"""

from __future__ import annotations

import enum
import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.config import settings
from app.database import async_session, get_session_factory, utcnow
from app.models.center.activity import CenterActivity
from app.models.center.inventory import InventoryItem
from app.models.center.maintenance import MaintenanceRequest, MaintenanceStatus
from app.models.center.sale import Sale
from app.models.center.session import CenterSession
from app.models.public.center import Center
from app.models.public.global_activity import GlobalActivity
from app.schemas.activity import ActivitySummary, ActivityWithCenter
from app.schemas.reports import (
    CenterReport,
    CenterTotals,
    MaintenanceStats,
    TechnicianTally,
)
from app.schemas.session import SessionSummary, SessionWithStats

logger = logging.getLogger("centerops.reporting")

UNKNOWN_CENTER = "Unknown center"
UNASSIGNED = "unassigned"


class TimeRange(str, enum.Enum):
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


def time_range_start(time_range: TimeRange | str, now: datetime) -> datetime | None:
    """Lower bound of a time range, or None for 'all'."""
    time_range = TimeRange(time_range)
    if time_range is TimeRange.TODAY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if time_range is TimeRange.WEEK:
        return now - timedelta(days=7)
    if time_range is TimeRange.MONTH:
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return None


def activity_limit(time_range: TimeRange | str) -> int:
    return {
        TimeRange.TODAY: settings.activities_limit_today,
        TimeRange.WEEK: settings.activities_limit_week,
        TimeRange.MONTH: settings.activities_limit_month,
        TimeRange.ALL: settings.activities_limit_all,
    }[TimeRange(time_range)]


def duration_minutes(
    start: datetime, end: datetime | None, now: datetime
) -> int:
    """Whole minutes from start to end (or now), never negative."""
    seconds = ((end or now) - start).total_seconds()
    return max(0, int(seconds // 60))


class ReportingService:
    def __init__(self, session_factory: async_sessionmaker | None = None):
        self._session_factory = session_factory or async_session
        # Center ids skipped by the last per-center load
        self.failed_centers: list[str] = []

    # ── Centers ─────────────────────────────────────────────

    async def load_centers(self) -> list[Center]:
        async with self._session_factory() as db:
            result = await db.execute(select(Center).order_by(Center.name))
            return list(result.scalars().all())

    async def center_names(self) -> dict[str, str]:
        async with self._session_factory() as db:
            result = await db.execute(select(Center.id, Center.name))
            return {row.id: row.name for row in result.all()}

    # ── Sessions ────────────────────────────────────────────

    async def load_all_sessions(
        self, now: datetime | None = None
    ) -> list[SessionWithStats]:
        """Recent sessions of every center, newest first."""
        now = now or utcnow()
        centers = await self.load_centers()
        self.failed_centers = []

        merged: list[SessionWithStats] = []
        for center in centers:
            try:
                merged.extend(await self._load_center_sessions(center.id, now))
            except Exception:
                logger.error(
                    "Failed to load sessions for center %s", center.id,
                    exc_info=True,
                )
                self.failed_centers.append(center.id)

        merged.sort(key=lambda s: s.session_start, reverse=True)
        return merged

    async def _load_center_sessions(
        self, center_id: str, now: datetime
    ) -> list[SessionWithStats]:
        async with self._session_factory() as db:
            result = await db.execute(
                select(CenterSession)
                .where(CenterSession.center_id == center_id)
                .order_by(CenterSession.session_start.desc())
                .limit(settings.sessions_per_center)
            )
            sessions = result.scalars().all()

            out = []
            for record in sessions:
                window_end = record.session_end or now
                count = await db.scalar(
                    select(func.count(CenterActivity.id)).where(
                        CenterActivity.center_id == center_id,
                        CenterActivity.timestamp >= record.session_start,
                        CenterActivity.timestamp <= window_end,
                    )
                )
                out.append(SessionWithStats(
                    id=record.id,
                    center_id=record.center_id,
                    center_name=record.center_name,
                    session_start=record.session_start,
                    session_end=record.session_end,
                    is_active=record.is_active,
                    end_reason=record.end_reason,
                    total_activities=count or 0,
                    duration_minutes=duration_minutes(
                        record.session_start, record.session_end, now
                    ),
                ))
            return out

    # ── Activities ──────────────────────────────────────────

    async def load_global_activities(
        self,
        time_range: TimeRange | str = TimeRange.TODAY,
        now: datetime | None = None,
    ) -> list[ActivityWithCenter]:
        now = now or utcnow()
        start = time_range_start(time_range, now)

        stmt = select(GlobalActivity)
        if start is not None:
            stmt = stmt.where(GlobalActivity.timestamp >= start)
        stmt = stmt.order_by(GlobalActivity.timestamp.desc()).limit(
            activity_limit(time_range)
        )

        async with self._session_factory() as db:
            rows = (await db.execute(stmt)).scalars().all()
        names = await self.center_names()
        return [_with_center(row, names) for row in rows]

    async def latest_activity(self) -> ActivityWithCenter | None:
        async with self._session_factory() as db:
            row = await db.scalar(
                select(GlobalActivity)
                .order_by(GlobalActivity.timestamp.desc())
                .limit(1)
            )
        if row is None:
            return None
        return _with_center(row, await self.center_names())

    # ── Center data ─────────────────────────────────────────

    async def load_center_report(
        self,
        center_id: str,
        center_name: str,
        period: str = "all",
        now: datetime | None = None,
    ) -> CenterReport:
        async with self._session_factory() as db:
            items = (await db.execute(
                select(InventoryItem).where(InventoryItem.center_id == center_id)
            )).scalars().all()
            sales = (await db.execute(
                select(Sale).where(Sale.center_id == center_id)
            )).scalars().all()
            requests = (await db.execute(
                select(MaintenanceRequest).where(
                    MaintenanceRequest.center_id == center_id
                )
            )).scalars().all()

        return center_report(
            center_id, center_name, items, sales, requests, period, now
        )

    async def load_center_totals(
        self, centers: Iterable[Center], now: datetime | None = None
    ) -> list[CenterTotals]:
        """Report totals per center; a failing center is skipped and recorded."""
        now = now or utcnow()
        totals: list[CenterTotals] = []
        for center in centers:
            try:
                report = await self.load_center_report(center.id, center.name, now=now)
            except Exception:
                logger.error(
                    "Failed to load report for center %s", center.id, exc_info=True
                )
                if center.id not in self.failed_centers:
                    self.failed_centers.append(center.id)
                continue
            totals.append(report.totals)
        return totals

    async def load_maintenance(
        self, center_id: str, period: str = "all", now: datetime | None = None
    ) -> list[MaintenanceRequest]:
        now = now or utcnow()
        async with self._session_factory() as db:
            rows = (await db.execute(
                select(MaintenanceRequest)
                .where(MaintenanceRequest.center_id == center_id)
                .order_by(MaintenanceRequest.created_at.desc())
            )).scalars().all()
        return [r for r in rows if in_period(r.created_at, period, now)]


def _with_center(row: GlobalActivity, names: dict[str, str]) -> ActivityWithCenter:
    return ActivityWithCenter(
        id=row.id,
        center_id=row.center_id,
        center_name=names.get(row.center_id) or UNKNOWN_CENTER,
        actor_id=row.actor_id,
        actor_name=row.actor_name,
        category=row.category,
        action=row.action,
        description=row.description,
        target_id=row.target_id,
        target_name=row.target_name,
        details=row.details,
        timestamp=row.timestamp,
    )


# ── Summaries ───────────────────────────────────────────────

def summarize_sessions(sessions: Iterable[SessionWithStats]) -> SessionSummary:
    sessions = list(sessions)
    active = sum(1 for s in sessions if s.is_active)
    total_minutes = sum(s.duration_minutes for s in sessions)
    return SessionSummary(
        total=len(sessions),
        active=active,
        ended=len(sessions) - active,
        total_activities=sum(s.total_activities for s in sessions),
        average_duration_minutes=(
            round(total_minutes / len(sessions), 1) if sessions else 0.0
        ),
    )


def summarize_activities(activities: Iterable[ActivityWithCenter]) -> ActivitySummary:
    by_category: Counter = Counter()
    by_center: Counter = Counter()
    by_actor: Counter = Counter()
    total = 0
    for a in activities:
        total += 1
        by_category[a.category] += 1
        by_center[a.center_name] += 1
        by_actor[a.actor_name] += 1
    return ActivitySummary(
        total=total,
        by_category=dict(by_category),
        by_center=dict(by_center),
        by_actor=dict(by_actor),
    )


# ── Filters ─────────────────────────────────────────────────

def filter_sessions(
    sessions: Iterable[SessionWithStats],
    *,
    status: str = "all",
    center_id: str | None = None,
    search: str | None = None,
    start_date: datetime | None = None,
) -> list[SessionWithStats]:
    """Dashboard session filters: status, center, name search, start day."""
    needle = search.strip().lower() if search else ""
    out = []
    for s in sessions:
        if status == "active" and not s.is_active:
            continue
        if status == "ended" and s.is_active:
            continue
        if center_id and s.center_id != center_id:
            continue
        if needle and needle not in s.center_name.lower():
            continue
        if start_date and s.session_start.date() != start_date.date():
            continue
        out.append(s)
    return out


def filter_activities(
    activities: Iterable[ActivityWithCenter],
    *,
    category: str | None = None,
    center_id: str | None = None,
    search: str | None = None,
) -> list[ActivityWithCenter]:
    needle = search.strip().lower() if search else ""
    out = []
    for a in activities:
        if category and category != "all" and a.category != category:
            continue
        if center_id and center_id != "all" and a.center_id != center_id:
            continue
        if needle:
            haystack = f"{a.description or a.action} {a.actor_name}".lower()
            if needle not in haystack:
                continue
        out.append(a)
    return out


# ── Center statistics ───────────────────────────────────────

_PERIOD_DAYS = {"week": 7, "month": 30, "year": 365}


def in_period(moment: datetime | None, period: str, now: datetime) -> bool:
    """True when `moment` is within the period, counted in whole days."""
    if period == "all" or period not in _PERIOD_DAYS:
        return True
    if moment is None:
        return False
    days = (now - moment).days
    return days <= _PERIOD_DAYS[period]


def maintenance_stats(requests: Iterable[MaintenanceRequest]) -> MaintenanceStats:
    by_status: Counter = Counter()
    by_customer: Counter = Counter()
    parts_used: Counter = Counter()
    by_technician: dict[str, TechnicianTally] = {}

    total = 0
    for r in requests:
        total += 1
        by_status[r.status] += 1
        by_customer[r.customer_name] += 1

        tally = by_technician.setdefault(
            r.technician_id or UNASSIGNED, TechnicianTally()
        )
        if r.status == MaintenanceStatus.COMPLETED.value:
            tally.completed += 1
            for part in r.parts or []:
                parts_used[part.get("item_name") or part.get("item_id")] += int(
                    part.get("quantity", 0)
                )
        elif r.status == MaintenanceStatus.IN_PROGRESS.value:
            tally.in_progress += 1
        elif r.status == MaintenanceStatus.CANCELLED.value:
            tally.cancelled += 1
        else:
            tally.pending += 1

    completed = by_status.get(MaintenanceStatus.COMPLETED.value, 0)
    return MaintenanceStats(
        total=total,
        completed=completed,
        pending=by_status.get(MaintenanceStatus.PENDING.value, 0),
        by_status=dict(by_status),
        by_technician=by_technician,
        by_customer=dict(by_customer),
        parts_used=dict(parts_used),
        completion_rate=round(completed / total * 100, 1) if total else 0.0,
    )


def center_report(
    center_id: str,
    center_name: str,
    items: Iterable[InventoryItem],
    sales: Iterable[Sale],
    requests: Iterable[MaintenanceRequest],
    period: str = "all",
    now: datetime | None = None,
) -> CenterReport:
    """Inventory, sales and maintenance figures for one center.

    Stock counts are current; sales and maintenance are limited to `period`.
    """
    now = now or utcnow()
    items = list(items)
    sales = [s for s in sales if in_period(s.date, period, now)]
    requests = [r for r in requests if in_period(r.created_at, period, now)]

    totals = CenterTotals(
        center_id=center_id,
        center_name=center_name,
        items=len(items),
        low_stock_items=sum(
            1 for i in items if i.quantity < settings.low_stock_threshold
        ),
        sales=len(sales),
        revenue=round(sum(s.total_price for s in sales), 2),
        maintenance=len(requests),
    )
    return CenterReport(
        period=period, totals=totals, maintenance=maintenance_stats(requests)
    )


def get_reporting_service(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> ReportingService:
    return ReportingService(session_factory)
