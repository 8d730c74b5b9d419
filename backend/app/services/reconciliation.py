"""Mirror reconciliation: repairs activity records that landed on one side.

The activity logger writes each record twice (center and global) in
separate transactions, so a crash or a failed write can leave a record on
one side only. Both copies share the same id; this job finds ids present
on one side and missing on the other and copies the row across.

    - missing_global:  center row exists, global mirror does not
    - missing_local:   global row exists, center row does not
    - orphans:         global rows whose center no longer exists (reported,
                       not copied, since the center row needs a valid FK)

Runs from the scheduler loop, `POST /api/admin/reconcile` and
`python -m app.cli reconcile`.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.database import async_session
from app.models.center.activity import CenterActivity
from app.models.public.center import Center
from app.models.public.global_activity import GlobalActivity

logger = logging.getLogger("centerops.reconciliation")

# Copied verbatim between the two tables
_SHARED_COLUMNS = (
    "id", "center_id", "actor_id", "actor_name", "category", "action",
    "description", "target_id", "target_name", "details", "timestamp",
    "created_at",
)

BATCH_SIZE = 500


def _shared(row) -> dict:
    return {col: getattr(row, col) for col in _SHARED_COLUMNS}


async def reconcile_activity_mirrors(
    session_factory: async_sessionmaker | None = None,
) -> dict:
    """Copy activity rows missing from either side. Returns a run summary."""
    session_factory = session_factory or async_session

    async with session_factory() as db:
        names = {
            row.id: row.name
            for row in (await db.execute(select(Center.id, Center.name))).all()
        }

        missing_global = (await db.execute(
            select(CenterActivity)
            .where(~CenterActivity.id.in_(select(GlobalActivity.id)))
            .limit(BATCH_SIZE)
        )).scalars().all()
        for row in missing_global:
            db.add(GlobalActivity(
                **_shared(row), center_name=names.get(row.center_id)
            ))

        missing_local = (await db.execute(
            select(GlobalActivity)
            .where(~GlobalActivity.id.in_(select(CenterActivity.id)))
            .limit(BATCH_SIZE)
        )).scalars().all()
        copied_local = 0
        orphans = 0
        for row in missing_local:
            if row.center_id not in names:
                orphans += 1
                continue
            db.add(CenterActivity(**_shared(row)))
            copied_local += 1

        await db.commit()

    summary = {
        "missing_global": len(missing_global),
        "missing_local": copied_local,
        "orphans": orphans,
    }
    if len(missing_global) or copied_local:
        logger.warning(
            "Repaired activity mirrors: %d global, %d local (%d orphans)",
            len(missing_global), copied_local, orphans,
        )
    else:
        logger.info("Activity mirrors consistent (%d orphans)", orphans)
    return summary
