"""CenterSession: one continuous period of center-side use.

Open → Closed, never reopened. The partial unique index allows at most one
open session per center; a second concurrent start fails at the store.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base, utcnow


class CenterSession(Base):
    __tablename__ = "center_sessions"
    __table_args__ = (
        Index(
            "uq_center_sessions_one_active",
            "center_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        Index("ix_center_sessions_center_start", "center_id", "session_start"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    center_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("centers.id"), nullable=False
    )
    center_name: Mapped[str] = mapped_column(String(255), nullable=False)

    session_start: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    session_end: Mapped[datetime | None] = mapped_column(DateTime)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    opened_by: Mapped[str | None] = mapped_column(String(255))
    closed_by: Mapped[str | None] = mapped_column(String(255))
    # logout | manual | expired
    end_reason: Mapped[str | None] = mapped_column(String(20))
