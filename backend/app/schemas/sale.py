"""Pydantic schemas for sales."""

from datetime import datetime

from pydantic import BaseModel, Field


class SaleCreate(BaseModel):
    item_id: str
    quantity: int = Field(..., gt=0)
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_phone: str = Field(..., min_length=1, max_length=50)
    note: str | None = None


class SaleOut(BaseModel):
    id: str
    center_id: str
    center_name: str | None
    item_id: str
    item_name: str
    quantity: int
    total_price: float
    customer_name: str
    customer_phone: str
    note: str | None
    created_by: str | None
    date: datetime

    model_config = {"from_attributes": True}
