"""Center-scoped maintenance request routes.

  GET    /                list (filter by status / technician)
  POST   /                open a request
  GET    /{id}            one request
  PATCH  /{id}            edit request details
  DELETE /{id}            remove a request
  POST   /{id}/status     status transition (lifecycle + parts deduction)
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_acting_principal, require_permission
from app.auth.principal import Principal
from app.database import get_db
from app.models.center.activity import ActivityCategory
from app.models.center.maintenance import MaintenanceRequest, MaintenanceStatus
from app.models.center.technician import Technician
from app.schemas.maintenance import (
    MaintenanceCreate,
    MaintenanceOut,
    MaintenanceUpdate,
    StatusChange,
)
from app.services import maintenance as maintenance_service
from app.services.activity_logger import ActivityLogger, get_activity_logger, snapshot
from app.tenancy import get_center_owned

router = APIRouter()

_FIELDS = (
    "customer_name", "phone_number", "customer_id", "device_type",
    "description", "status", "technician_id", "technician_name",
    "is_warranty", "parts", "total_cost", "notes",
)


async def _technician_name(db: AsyncSession, center_id: str, technician_id: str | None):
    if not technician_id:
        return None
    tech = await get_center_owned(db, Technician, technician_id, center_id)
    return tech.name


@router.get("/", response_model=list[MaintenanceOut])
async def list_requests(
    status_filter: MaintenanceStatus | None = Query(None, alias="status"),
    technician_id: str | None = Query(None),
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("maintenance.read")),
):
    stmt = select(MaintenanceRequest).where(
        MaintenanceRequest.center_id == principal.center_id
    )
    if status_filter is not None:
        stmt = stmt.where(MaintenanceRequest.status == status_filter.value)
    if technician_id:
        stmt = stmt.where(MaintenanceRequest.technician_id == technician_id)
    result = await db.execute(stmt.order_by(MaintenanceRequest.created_at.desc()))
    return result.scalars().all()


@router.post("/", response_model=MaintenanceOut, status_code=status.HTTP_201_CREATED)
async def create_request(
    body: MaintenanceCreate,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("maintenance.write")),
):
    parts = [p.model_dump() for p in body.parts]
    request = MaintenanceRequest(
        center_id=principal.center_id,
        **body.model_dump(exclude={"parts", "status"}),
        technician_name=await _technician_name(db, principal.center_id, body.technician_id),
        parts=parts,
        total_cost=maintenance_service.parts_total(parts),
        status=MaintenanceStatus.PENDING.value,
        lifecycle=[
            maintenance_service.lifecycle_entry(
                MaintenanceStatus.PENDING.value, "Request created",
                principal.actor_name, body.notes,
            )
        ],
    )
    db.add(request)
    await db.flush()

    details = {"new": snapshot(request, _FIELDS)}
    if body.status != MaintenanceStatus.PENDING.value:
        details["status_change"] = await maintenance_service.change_status(
            db, request, MaintenanceStatus(body.status), principal.actor_name
        )
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.MAINTENANCE,
        f"New maintenance request: {request.device_type} for {request.customer_name}",
        target_id=request.id, target_name=request.customer_name,
        details=details,
    )
    return request


@router.get("/{request_id}", response_model=MaintenanceOut)
async def get_request(
    request_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("maintenance.read")),
):
    return await get_center_owned(db, MaintenanceRequest, request_id, principal.center_id)


@router.patch("/{request_id}", response_model=MaintenanceOut)
async def update_request(
    request_id: str,
    body: MaintenanceUpdate,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("maintenance.write")),
):
    request = await get_center_owned(
        db, MaintenanceRequest, request_id, principal.center_id
    )
    old = snapshot(request, _FIELDS)

    updates = body.model_dump(exclude_unset=True)
    if "technician_id" in updates:
        request.technician_name = await _technician_name(
            db, principal.center_id, updates["technician_id"]
        )
    if "parts" in updates:
        updates["parts"] = updates["parts"] or []
        request.total_cost = maintenance_service.parts_total(updates["parts"])
    for key, value in updates.items():
        setattr(request, key, value)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.MAINTENANCE,
        f"Updated maintenance request: {request.device_type} for {request.customer_name}",
        target_id=request.id, target_name=request.customer_name,
        details={"old": old, "new": snapshot(request, _FIELDS)},
    )
    return request


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_request(
    request_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("maintenance.write")),
):
    request = await get_center_owned(
        db, MaintenanceRequest, request_id, principal.center_id
    )
    deleted = snapshot(request, _FIELDS)
    await db.delete(request)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.MAINTENANCE,
        f"Deleted maintenance request for {deleted['customer_name']}",
        target_id=request_id, target_name=deleted["customer_name"],
        details={"deleted": deleted},
    )


@router.post("/{request_id}/status", response_model=MaintenanceOut)
async def change_status(
    request_id: str,
    body: StatusChange,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("maintenance.write")),
):
    request = await get_center_owned(
        db, MaintenanceRequest, request_id, principal.center_id
    )
    details = await maintenance_service.change_status(
        db, request, MaintenanceStatus(body.status), principal.actor_name, body.notes
    )
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.MAINTENANCE,
        f"Maintenance status changed to {body.status}: {request.device_type}",
        target_id=request.id, target_name=request.customer_name,
        details=details,
    )
    return request
