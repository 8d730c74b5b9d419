"""Pydantic schemas for inventory items."""

from datetime import datetime

from pydantic import BaseModel, Field


class InventoryItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    quantity: int = Field(0, ge=0)
    price: float = Field(0, ge=0)
    note: str | None = None


class InventoryItemUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    quantity: int | None = Field(None, ge=0)
    price: float | None = Field(None, ge=0)
    note: str | None = None


class InventoryItemOut(BaseModel):
    id: str
    center_id: str
    name: str
    quantity: int
    price: float
    note: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
