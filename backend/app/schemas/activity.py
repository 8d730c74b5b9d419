"""Pydantic schemas for the activity journal and the admin activity views."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class ActivityEntry(BaseModel):
    id: str
    center_id: str
    actor_id: str
    actor_name: str
    category: str
    action: str
    description: str | None = None
    target_id: str | None = None
    target_name: str | None = None
    details: Any = None
    timestamp: datetime

    model_config = {"from_attributes": True}


class ActivityWithCenter(ActivityEntry):
    center_name: str


class ActivityListResponse(BaseModel):
    items: list[ActivityEntry]
    total: int


class GlobalActivityResponse(BaseModel):
    time_range: str
    limit: int
    items: list[ActivityWithCenter]
    summary: "ActivitySummary"


class ActivitySummary(BaseModel):
    total: int
    by_category: dict[str, int]
    by_center: dict[str, int]
    by_actor: dict[str, int]


GlobalActivityResponse.model_rebuild()
