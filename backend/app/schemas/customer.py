"""Pydantic schemas for Customer CRUD operations."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

CustomerTypeLiteral = Literal["distributor", "consumer"]


class CustomerCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    phone_number: str = Field(..., min_length=1, max_length=50)
    customer_type: CustomerTypeLiteral = "consumer"


class CustomerUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    phone_number: str | None = Field(None, min_length=1, max_length=50)
    customer_type: CustomerTypeLiteral | None = None


class CustomerOut(BaseModel):
    id: str
    center_id: str
    name: str
    phone_number: str
    customer_type: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CustomerStats(BaseModel):
    customer_id: str
    total_requests: int
    completed: int
    pending: int
