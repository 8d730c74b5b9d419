"""Pydantic schemas for report views."""

from pydantic import BaseModel

from app.schemas.activity import ActivitySummary, ActivityWithCenter
from app.schemas.session import SessionSummary


class TechnicianTally(BaseModel):
    completed: int = 0
    pending: int = 0
    in_progress: int = 0
    cancelled: int = 0


class MaintenanceStats(BaseModel):
    total: int
    completed: int
    pending: int
    by_status: dict[str, int]
    by_technician: dict[str, TechnicianTally]
    by_customer: dict[str, int]
    parts_used: dict[str, int]
    completion_rate: float


class CenterTotals(BaseModel):
    center_id: str
    center_name: str
    items: int = 0
    low_stock_items: int = 0
    sales: int = 0
    revenue: float = 0
    maintenance: int = 0


class CenterReport(BaseModel):
    period: str
    totals: CenterTotals
    maintenance: MaintenanceStats


class AdminOverview(BaseModel):
    centers: int
    active_sessions: int
    sessions: SessionSummary
    activities_today: ActivitySummary
    centers_breakdown: list[CenterTotals]
    latest_activity: ActivityWithCenter | None = None
    failed_centers: list[str] = []
