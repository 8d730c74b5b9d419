"""Pydantic schemas for Technician CRUD operations."""

from datetime import datetime

from pydantic import BaseModel, Field


class TechnicianCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=50)


class TechnicianUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    phone_number: str | None = Field(None, min_length=1, max_length=50)


class TechnicianOut(BaseModel):
    id: str
    center_id: str
    name: str
    phone_number: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TechnicianStats(BaseModel):
    technician_id: str
    total_requests: int
    completed: int
    pending: int
    in_progress: int
    completion_rate: float
