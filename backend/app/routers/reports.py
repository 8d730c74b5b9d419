"""Per-center report routes.

  GET /center          inventory, sales and maintenance figures
  GET /maintenance     maintenance statistics only

`period` is one of week | month | year | all, counted back from today in
whole days.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query

from app.auth.deps import get_acting_principal, require_permission
from app.auth.principal import Principal
from app.schemas.reports import CenterReport, MaintenanceStats
from app.services import reporting
from app.services.reporting import ReportingService, get_reporting_service

router = APIRouter()

Period = Literal["week", "month", "year", "all"]


@router.get("/center", response_model=CenterReport)
async def center_report(
    period: Period = Query("all"),
    principal: Principal = Depends(get_acting_principal),
    service: ReportingService = Depends(get_reporting_service),
    _perm: Principal = Depends(require_permission("reports.read")),
):
    return await service.load_center_report(
        principal.center_id, principal.center_name or "", period
    )


@router.get("/maintenance", response_model=MaintenanceStats)
async def maintenance_report(
    period: Period = Query("all"),
    principal: Principal = Depends(get_acting_principal),
    service: ReportingService = Depends(get_reporting_service),
    _perm: Principal = Depends(require_permission("reports.read")),
):
    requests = await service.load_maintenance(principal.center_id, period)
    return reporting.maintenance_stats(requests)
