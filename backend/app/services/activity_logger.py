"""Activity logger: the write path of the audit trail.

Usage:
    await activity_logger.log(
        principal, ActivityCategory.TECHNICIAN,
        f"Added technician: {tech.name}",
        target_id=tech.id, target_name=tech.name,
        details={"new": payload},
    )

Each call writes one record to `center_activities` and a mirror with the
same id to `global_activities`. The two writes run in separate
transactions: either may fail without affecting the other, failures are
logged and swallowed, and the caller's own action is never blocked. Rows
missing on one side are repaired later by
`app.services.reconciliation.reconcile_activity_mirrors`.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from fastapi import Depends
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.auth.principal import Principal
from app.database import async_session, get_session_factory, utcnow
from app.models.center.activity import ActivityCategory, CenterActivity
from app.models.public.global_activity import GlobalActivity

logger = logging.getLogger(__name__)


class ActivityLogger:
    def __init__(self, session_factory: async_sessionmaker | None = None):
        self._session_factory = session_factory or async_session

    async def log(
        self,
        principal: Principal | None,
        category: ActivityCategory | str | None,
        action: str,
        *,
        description: str | None = None,
        target_id: str | None = None,
        target_name: str | None = None,
        details: Any = None,
        timestamp: datetime | None = None,
    ) -> str | None:
        """Record one activity. Returns its id, or None if nothing was written."""
        center_id = principal.center_id if principal else None
        if not center_id:
            logger.debug("Activity %r not logged: no center context", action)
            return None

        record_id = str(uuid.uuid4())
        fields = {
            "id": record_id,
            "center_id": center_id,
            "actor_id": principal.actor_id,
            "actor_name": principal.actor_name,
            "category": ActivityCategory.resolve(category).value,
            "action": action,
            "description": description or action,
            "target_id": target_id or None,
            "target_name": target_name or None,
            "details": jsonable_encoder(details) if details is not None else None,
            "timestamp": timestamp or utcnow(),
        }

        local_ok = await self._write(CenterActivity(**fields), "center")
        global_ok = await self._write(
            GlobalActivity(**fields, center_name=principal.center_name),
            "global",
        )
        if not (local_ok or global_ok):
            return None
        return record_id

    async def _write(self, row, target: str) -> bool:
        try:
            async with self._session_factory() as session:
                session.add(row)
                await session.commit()
            return True
        except Exception:
            logger.exception(
                "Failed to write %s activity %s (center %s)",
                target, row.id, row.center_id,
            )
            return False


def get_activity_logger(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> ActivityLogger:
    return ActivityLogger(session_factory)


def snapshot(row, fields) -> dict:
    """Plain dict of `fields` read from a model, for {old, new} details."""
    return {name: getattr(row, name) for name in fields}
