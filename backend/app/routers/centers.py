"""Center management (admin only).

  GET    /                 all centers
  POST   /                 create a center login
  GET    /{id}             one center
  PATCH  /{id}             update details, password or permissions
  DELETE /{id}             deactivate: close its session, revoke its tokens

Centers are never hard-deleted: their sessions, activities and sales
reference them. Each change is recorded against the affected center.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import require_admin
from app.auth.password import hash_password
from app.auth.principal import Principal
from app.auth.revocation import TokenRevocation
from app.database import get_db
from app.middleware.exceptions import ResourceNotFoundError
from app.models.center.activity import ActivityCategory
from app.models.public.center import Center
from app.schemas.center import CenterCreate, CenterOut, CenterUpdate
from app.services.activity_logger import ActivityLogger, get_activity_logger, snapshot
from app.services.sessions import SessionManager, get_session_manager

router = APIRouter()

_FIELDS = ("name", "email", "manager_name", "address", "phone", "is_active")


async def _get_center(db: AsyncSession, center_id: str) -> Center:
    center = await db.get(Center, center_id)
    if center is None:
        raise ResourceNotFoundError("Center", center_id)
    return center


async def _check_email_free(db: AsyncSession, email: str, exclude_id: str | None = None):
    stmt = select(Center.id).where(Center.email == email)
    if exclude_id:
        stmt = stmt.where(Center.id != exclude_id)
    if (await db.execute(stmt)).first():
        raise HTTPException(status_code=400, detail="Email already registered")


@router.get("/", response_model=list[CenterOut])
async def list_centers(
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    result = await db.execute(select(Center).order_by(Center.name))
    return result.scalars().all()


@router.post("/", response_model=CenterOut, status_code=status.HTTP_201_CREATED)
async def create_center(
    body: CenterCreate,
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    admin: Principal = Depends(require_admin),
):
    await _check_email_free(db, body.email)

    center = Center(
        **body.model_dump(exclude={"password"}),
        hashed_password=hash_password(body.password),
    )
    db.add(center)
    await db.commit()

    await activity_logger.log(
        admin.scoped_to(center.id, center.name), ActivityCategory.OTHER,
        f"Center created: {center.name}",
        target_id=center.id, target_name=center.name,
        details={"new": snapshot(center, _FIELDS)},
    )
    return center


@router.get("/{center_id}", response_model=CenterOut)
async def get_center(
    center_id: str,
    db: AsyncSession = Depends(get_db),
    _admin: Principal = Depends(require_admin),
):
    return await _get_center(db, center_id)


@router.patch("/{center_id}", response_model=CenterOut)
async def update_center(
    center_id: str,
    body: CenterUpdate,
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    admin: Principal = Depends(require_admin),
):
    center = await _get_center(db, center_id)
    old = snapshot(center, _FIELDS)

    updates = body.model_dump(exclude_unset=True)
    if updates.get("email"):
        await _check_email_free(db, updates["email"], exclude_id=center_id)
    password = updates.pop("password", None)
    if password:
        center.hashed_password = hash_password(password)
    for key, value in updates.items():
        setattr(center, key, value)
    await db.commit()

    if updates.get("is_active") is True and not old["is_active"]:
        await TokenRevocation.clear_center_revocation(center_id)

    details = {"old": old, "new": snapshot(center, _FIELDS)}
    if password:
        details["password_changed"] = True
    await activity_logger.log(
        admin.scoped_to(center.id, center.name), ActivityCategory.OTHER,
        f"Center updated: {center.name}",
        target_id=center.id, target_name=center.name,
        details=details,
    )
    return center


@router.delete("/{center_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_center(
    center_id: str,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    admin: Principal = Depends(require_admin),
):
    center = await _get_center(db, center_id)
    center.is_active = False
    await db.commit()

    active = await sessions.get_active_session(center_id)
    if active is not None:
        await sessions.end_session(active.id, center_id, admin, reason="manual")
    await TokenRevocation.revoke_center_tokens(center_id)

    await activity_logger.log(
        admin.scoped_to(center.id, center.name), ActivityCategory.OTHER,
        f"Center deactivated: {center.name}",
        target_id=center.id, target_name=center.name,
        details={"deleted": snapshot(center, _FIELDS)},
    )
