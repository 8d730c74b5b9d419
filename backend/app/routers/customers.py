"""Center-scoped customer routes: CRUD plus per-customer stats."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_acting_principal, require_permission
from app.auth.principal import Principal
from app.database import get_db
from app.models.center.activity import ActivityCategory
from app.models.center.customer import Customer, CustomerType
from app.models.center.maintenance import MaintenanceRequest, MaintenanceStatus
from app.schemas.customer import (
    CustomerCreate,
    CustomerOut,
    CustomerStats,
    CustomerUpdate,
)
from app.services.activity_logger import ActivityLogger, get_activity_logger, snapshot
from app.tenancy import get_center_owned

router = APIRouter()

_FIELDS = ("name", "phone_number", "customer_type")


@router.get("/", response_model=list[CustomerOut])
async def list_customers(
    customer_type: CustomerType | None = Query(None),
    search: str | None = Query(None, description="Name or phone fragment"),
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("customers.read")),
):
    stmt = select(Customer).where(Customer.center_id == principal.center_id)
    if customer_type is not None:
        stmt = stmt.where(Customer.customer_type == customer_type.value)
    if search:
        pattern = f"%{search}%"
        stmt = stmt.where(
            Customer.name.ilike(pattern) | Customer.phone_number.ilike(pattern)
        )
    result = await db.execute(stmt.order_by(Customer.name))
    return result.scalars().all()


@router.post("/", response_model=CustomerOut, status_code=status.HTTP_201_CREATED)
async def create_customer(
    body: CustomerCreate,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("customers.write")),
):
    customer = Customer(center_id=principal.center_id, **body.model_dump())
    db.add(customer)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.CUSTOMER,
        f"Added customer: {customer.name}",
        target_id=customer.id, target_name=customer.name,
        details={"new": snapshot(customer, _FIELDS)},
    )
    return customer


@router.get("/{customer_id}", response_model=CustomerOut)
async def get_customer(
    customer_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("customers.read")),
):
    return await get_center_owned(db, Customer, customer_id, principal.center_id)


@router.patch("/{customer_id}", response_model=CustomerOut)
async def update_customer(
    customer_id: str,
    body: CustomerUpdate,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("customers.write")),
):
    customer = await get_center_owned(db, Customer, customer_id, principal.center_id)
    old = snapshot(customer, _FIELDS)

    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(customer, key, value)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.CUSTOMER,
        f"Updated customer: {customer.name}",
        target_id=customer.id, target_name=customer.name,
        details={"old": old, "new": snapshot(customer, _FIELDS)},
    )
    return customer


@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_customer(
    customer_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("customers.write")),
):
    customer = await get_center_owned(db, Customer, customer_id, principal.center_id)
    deleted = snapshot(customer, _FIELDS)
    await db.delete(customer)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.CUSTOMER,
        f"Deleted customer: {deleted['name']}",
        target_id=customer_id, target_name=deleted["name"],
        details={"deleted": deleted},
    )


@router.get("/{customer_id}/stats", response_model=CustomerStats)
async def customer_stats(
    customer_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("customers.read")),
):
    await get_center_owned(db, Customer, customer_id, principal.center_id)
    result = await db.execute(
        select(MaintenanceRequest.status).where(
            MaintenanceRequest.center_id == principal.center_id,
            MaintenanceRequest.customer_id == customer_id,
        )
    )
    statuses = list(result.scalars().all())
    return CustomerStats(
        customer_id=customer_id,
        total_requests=len(statuses),
        completed=statuses.count(MaintenanceStatus.COMPLETED.value),
        pending=statuses.count(MaintenanceStatus.PENDING.value),
    )
