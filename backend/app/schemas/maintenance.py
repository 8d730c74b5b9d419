"""Pydantic schemas for maintenance requests."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

MaintenanceStatusLiteral = Literal["pending", "in-progress", "completed", "cancelled"]


class MaintenancePart(BaseModel):
    item_id: str
    item_name: str
    quantity: int = Field(..., gt=0)
    unit_price: float = Field(0, ge=0)


class LifecycleEntry(BaseModel):
    timestamp: datetime
    status: MaintenanceStatusLiteral
    action: str
    performed_by: str
    notes: str | None = None


class MaintenanceCreate(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    phone_number: str | None = None
    customer_id: str | None = None
    device_type: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    status: MaintenanceStatusLiteral = "pending"
    technician_id: str | None = None
    is_warranty: bool = False
    parts: list[MaintenancePart] = []
    notes: str | None = None


class MaintenanceUpdate(BaseModel):
    customer_name: str | None = Field(None, min_length=1, max_length=255)
    phone_number: str | None = None
    customer_id: str | None = None
    device_type: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    technician_id: str | None = None
    is_warranty: bool | None = None
    parts: list[MaintenancePart] | None = None
    notes: str | None = None


class StatusChange(BaseModel):
    status: MaintenanceStatusLiteral
    notes: str | None = None


class MaintenanceOut(BaseModel):
    id: str
    center_id: str
    customer_name: str
    phone_number: str | None
    customer_id: str | None
    device_type: str
    description: str
    status: str
    technician_id: str | None
    technician_name: str | None
    is_warranty: bool
    parts: list[MaintenancePart]
    total_cost: float
    notes: str | None
    lifecycle: list[LifecycleEntry]
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None

    model_config = {"from_attributes": True}
