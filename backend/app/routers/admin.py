"""Cross-center admin views.

  GET  /sessions              every center's recent sessions with stats
  GET  /activities            global activity feed for a time range
  GET  /activities/latest     newest global activity (notification poll)
  GET  /overview              headline numbers for the admin dashboard
  POST /reconcile             repair activity mirrors now
"""

from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.auth.deps import require_permission
from app.auth.principal import Principal
from app.database import get_session_factory, utcnow
from app.schemas.activity import ActivityWithCenter, GlobalActivityResponse
from app.schemas.reports import AdminOverview
from app.schemas.session import AllSessionsResponse
from app.services import reporting
from app.services.reconciliation import reconcile_activity_mirrors
from app.services.reporting import ReportingService, TimeRange, get_reporting_service

router = APIRouter()


@router.get("/sessions", response_model=AllSessionsResponse)
async def all_sessions(
    status: Literal["all", "active", "ended"] = Query("all"),
    center_id: str | None = Query(None),
    search: str | None = Query(None, description="Center name fragment"),
    start_date: date | None = Query(None),
    service: ReportingService = Depends(get_reporting_service),
    _admin: Principal = Depends(require_permission("reports.global")),
):
    sessions = await service.load_all_sessions()
    items = reporting.filter_sessions(
        sessions,
        status=status,
        center_id=center_id,
        search=search,
        start_date=datetime.combine(start_date, datetime.min.time()) if start_date else None,
    )
    return AllSessionsResponse(
        items=items,
        summary=reporting.summarize_sessions(sessions),
        failed_centers=service.failed_centers,
    )


@router.get("/activities", response_model=GlobalActivityResponse)
async def global_activities(
    time_range: TimeRange = Query(TimeRange.TODAY, alias="range"),
    category: str | None = Query(None),
    center_id: str | None = Query(None),
    search: str | None = Query(None),
    service: ReportingService = Depends(get_reporting_service),
    _admin: Principal = Depends(require_permission("activities.global")),
):
    activities = await service.load_global_activities(time_range)
    items = reporting.filter_activities(
        activities, category=category, center_id=center_id, search=search
    )
    return GlobalActivityResponse(
        time_range=time_range.value,
        limit=reporting.activity_limit(time_range),
        items=items,
        summary=reporting.summarize_activities(items),
    )


@router.get("/activities/latest", response_model=ActivityWithCenter | None)
async def latest_activity(
    service: ReportingService = Depends(get_reporting_service),
    _admin: Principal = Depends(require_permission("activities.global")),
):
    return await service.latest_activity()


@router.get("/overview", response_model=AdminOverview)
async def overview(
    service: ReportingService = Depends(get_reporting_service),
    _admin: Principal = Depends(require_permission("reports.global")),
):
    now = utcnow()
    centers = await service.load_centers()
    sessions = await service.load_all_sessions(now)
    today = await service.load_global_activities(TimeRange.TODAY, now)
    breakdown = await service.load_center_totals(centers, now)

    summary = reporting.summarize_sessions(sessions)
    return AdminOverview(
        centers=len(centers),
        active_sessions=summary.active,
        sessions=summary,
        activities_today=reporting.summarize_activities(today),
        centers_breakdown=breakdown,
        latest_activity=today[0] if today else await service.latest_activity(),
        failed_centers=service.failed_centers,
    )


@router.post("/reconcile")
async def reconcile(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    _admin: Principal = Depends(require_permission("activities.global")),
):
    return await reconcile_activity_mirrors(session_factory)
