"""GlobalActivity: cross-center mirror of every center activity.

Read only by the admin reporting view. Each row shares its `id` with the
`center_activities` row it mirrors, which is how reconciliation finds
records that only landed on one side.
"""

from datetime import datetime

from sqlalchemy import DateTime, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class GlobalActivity(Base):
    __tablename__ = "global_activities"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    # ── Where ──────────────────────────────────────────────────
    center_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    center_name: Mapped[str | None] = mapped_column(String(255))

    # ── Who ────────────────────────────────────────────────────
    actor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    actor_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── What ───────────────────────────────────────────────────
    category: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    target_id: Mapped[str | None] = mapped_column(String(36))
    target_name: Mapped[str | None] = mapped_column(String(255))
    details: Mapped[dict | None] = mapped_column(JSON)

    # ── When ───────────────────────────────────────────────────
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
