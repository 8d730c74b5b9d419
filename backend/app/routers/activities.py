"""Center activity journal (read-only).

  GET /                        the center's recent activities
  GET /session/{session_id}    activities recorded during one session

Activity records are immutable: there is no write route here. Records are
created by the activity logger as a side effect of other actions.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_acting_principal, require_permission
from app.auth.principal import Principal
from app.database import get_db, utcnow
from app.models.center.activity import ActivityCategory, CenterActivity
from app.schemas.activity import ActivityEntry, ActivityListResponse
from app.services.sessions import SessionManager, get_session_manager

router = APIRouter()


@router.get("/", response_model=ActivityListResponse)
async def list_activities(
    category: ActivityCategory | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("activities.read")),
):
    filters = [CenterActivity.center_id == principal.center_id]
    if category is not None:
        filters.append(CenterActivity.category == category.value)

    total = await db.scalar(select(func.count(CenterActivity.id)).where(*filters)) or 0
    result = await db.execute(
        select(CenterActivity)
        .where(*filters)
        .order_by(CenterActivity.timestamp.desc())
        .limit(limit)
    )
    items = [ActivityEntry.model_validate(a) for a in result.scalars().all()]
    return ActivityListResponse(items=items, total=total)


@router.get("/session/{session_id}", response_model=list[ActivityEntry])
async def session_activities(
    session_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
    _perm: Principal = Depends(require_permission("activities.read")),
):
    session = await sessions.get_session(session_id, principal.center_id)
    result = await db.execute(
        select(CenterActivity)
        .where(
            CenterActivity.center_id == principal.center_id,
            CenterActivity.timestamp >= session.session_start,
            CenterActivity.timestamp <= (session.session_end or utcnow()),
        )
        .order_by(CenterActivity.timestamp.desc())
    )
    return result.scalars().all()
