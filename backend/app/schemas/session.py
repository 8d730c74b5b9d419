"""Pydantic schemas for center sessions."""

from datetime import datetime

from pydantic import BaseModel


class SessionOut(BaseModel):
    id: str
    center_id: str
    center_name: str
    session_start: datetime
    session_end: datetime | None = None
    is_active: bool
    end_reason: str | None = None

    model_config = {"from_attributes": True}


class CurrentSessionResponse(BaseModel):
    session: SessionOut | None


class SessionWithStats(SessionOut):
    total_activities: int
    # floor((end or now) - start) in whole minutes; for an open session
    # this is measured against the time of the request.
    duration_minutes: int


class SessionSummary(BaseModel):
    total: int
    active: int
    ended: int
    total_activities: int
    average_duration_minutes: float


class AllSessionsResponse(BaseModel):
    items: list[SessionWithStats]
    summary: SessionSummary
    failed_centers: list[str] = []
