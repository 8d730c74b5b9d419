"""MaintenanceRequest: a device brought in for repair.

`lifecycle` is an append-only JSON list of status transitions:
    [{"timestamp": iso, "status": str, "action": str,
      "performed_by": str, "notes": str | None}]
`parts` lists the inventory consumed when the request completes:
    [{"item_id": str, "item_name": str, "quantity": int, "unit_price": float}]
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class MaintenanceStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    center_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("centers.id"), nullable=False, index=True
    )

    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(50))
    customer_id: Mapped[str | None] = mapped_column(String(36), index=True)

    device_type: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=MaintenanceStatus.PENDING.value, nullable=False, index=True
    )

    technician_id: Mapped[str | None] = mapped_column(String(36), index=True)
    technician_name: Mapped[str | None] = mapped_column(String(255))

    is_warranty: Mapped[bool] = mapped_column(Boolean, default=False)
    parts: Mapped[list | None] = mapped_column(JSON, default=list)
    total_cost: Mapped[float] = mapped_column(Float, default=0)
    notes: Mapped[str | None] = mapped_column(Text)
    lifecycle: Mapped[list | None] = mapped_column(JSON, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)
