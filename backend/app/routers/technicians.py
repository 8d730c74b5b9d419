"""Center-scoped technician routes: CRUD plus per-technician stats."""

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_acting_principal, require_permission
from app.auth.principal import Principal
from app.database import get_db
from app.models.center.activity import ActivityCategory
from app.models.center.maintenance import MaintenanceRequest, MaintenanceStatus
from app.models.center.technician import Technician
from app.schemas.technician import (
    TechnicianCreate,
    TechnicianOut,
    TechnicianStats,
    TechnicianUpdate,
)
from app.services.activity_logger import ActivityLogger, get_activity_logger, snapshot
from app.tenancy import get_center_owned

router = APIRouter()

_FIELDS = ("name", "phone_number")


@router.get("/", response_model=list[TechnicianOut])
async def list_technicians(
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("technicians.read")),
):
    result = await db.execute(
        select(Technician)
        .where(Technician.center_id == principal.center_id)
        .order_by(Technician.name)
    )
    return result.scalars().all()


@router.post("/", response_model=TechnicianOut, status_code=status.HTTP_201_CREATED)
async def create_technician(
    body: TechnicianCreate,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("technicians.write")),
):
    tech = Technician(center_id=principal.center_id, **body.model_dump())
    db.add(tech)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.TECHNICIAN,
        f"Added technician: {tech.name}",
        target_id=tech.id, target_name=tech.name,
        details={"new": snapshot(tech, _FIELDS)},
    )
    return tech


@router.get("/{technician_id}", response_model=TechnicianOut)
async def get_technician(
    technician_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("technicians.read")),
):
    return await get_center_owned(db, Technician, technician_id, principal.center_id)


@router.patch("/{technician_id}", response_model=TechnicianOut)
async def update_technician(
    technician_id: str,
    body: TechnicianUpdate,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("technicians.write")),
):
    tech = await get_center_owned(db, Technician, technician_id, principal.center_id)
    old = snapshot(tech, _FIELDS)

    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(tech, key, value)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.TECHNICIAN,
        f"Updated technician: {tech.name}",
        target_id=tech.id, target_name=tech.name,
        details={"old": old, "new": snapshot(tech, _FIELDS)},
    )
    return tech


@router.delete("/{technician_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_technician(
    technician_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("technicians.write")),
):
    tech = await get_center_owned(db, Technician, technician_id, principal.center_id)
    deleted = snapshot(tech, _FIELDS)
    await db.delete(tech)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.TECHNICIAN,
        f"Deleted technician: {deleted['name']}",
        target_id=technician_id, target_name=deleted["name"],
        details={"deleted": deleted},
    )


@router.get("/{technician_id}/stats", response_model=TechnicianStats)
async def technician_stats(
    technician_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("technicians.read")),
):
    await get_center_owned(db, Technician, technician_id, principal.center_id)
    result = await db.execute(
        select(MaintenanceRequest.status).where(
            MaintenanceRequest.center_id == principal.center_id,
            MaintenanceRequest.technician_id == technician_id,
        )
    )
    statuses = list(result.scalars().all())
    total = len(statuses)
    completed = statuses.count(MaintenanceStatus.COMPLETED.value)
    return TechnicianStats(
        technician_id=technician_id,
        total_requests=total,
        completed=completed,
        pending=statuses.count(MaintenanceStatus.PENDING.value),
        in_progress=statuses.count(MaintenanceStatus.IN_PROGRESS.value),
        completion_rate=round(completed / total * 100, 1) if total else 0.0,
    )
