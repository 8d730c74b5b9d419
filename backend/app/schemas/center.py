"""Pydantic schemas for Center CRUD (admin only)."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class CenterCreate(BaseModel):
    name: str = Field(..., max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    manager_name: str | None = None
    address: str | None = None
    phone: str | None = None
    custom_permissions: dict[str, bool] | None = None


class CenterUpdate(BaseModel):
    name: str | None = None
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=6)
    manager_name: str | None = None
    address: str | None = None
    phone: str | None = None
    custom_permissions: dict[str, bool] | None = None
    is_active: bool | None = None


class CenterOut(BaseModel):
    id: str
    name: str
    email: str
    manager_name: str | None
    address: str | None
    phone: str | None
    custom_permissions: dict[str, bool] | None = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class CenterOption(BaseModel):
    """Public center picker entry on the login screen."""
    id: str
    name: str

    model_config = {"from_attributes": True}
