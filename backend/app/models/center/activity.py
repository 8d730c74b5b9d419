"""CenterActivity: immutable audit trail of one center's user actions.

Records who did what, when, and to which entity. The global mirror lives
in `app.models.public.global_activity`.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class ActivityCategory(str, enum.Enum):
    INVENTORY = "inventory"
    SALES = "sales"
    MAINTENANCE = "maintenance"
    CUSTOMER = "customer"
    TECHNICIAN = "technician"
    LOGIN = "login"
    LOGOUT = "logout"
    SESSION = "session"
    OTHER = "other"

    @classmethod
    def resolve(cls, value: "str | ActivityCategory | None") -> "ActivityCategory":
        """Map free-form input to a category; anything unknown is OTHER."""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.OTHER
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


class CenterActivity(Base):
    __tablename__ = "center_activities"
    __table_args__ = (
        Index("ix_center_activities_center_ts", "center_id", "timestamp"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    center_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("centers.id"), nullable=False
    )

    # ── Who ────────────────────────────────────────────────────
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── What ───────────────────────────────────────────────────
    # inventory | sales | maintenance | customer | technician |
    # login | logout | session | other
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    # ── Target ─────────────────────────────────────────────────
    target_id: Mapped[str | None] = mapped_column(String(36))
    target_name: Mapped[str | None] = mapped_column(String(255))

    # ── Context ────────────────────────────────────────────────
    details: Mapped[dict | None] = mapped_column(JSON)

    # ── When ───────────────────────────────────────────────────
    # `timestamp` is when the action happened (callers may backdate);
    # `created_at` is when the row was written.
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
