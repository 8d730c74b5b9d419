"""Center-scoped inventory routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_acting_principal, require_permission
from app.auth.principal import Principal
from app.config import settings
from app.database import get_db
from app.models.center.activity import ActivityCategory
from app.models.center.inventory import InventoryItem
from app.schemas.inventory import (
    InventoryItemCreate,
    InventoryItemOut,
    InventoryItemUpdate,
)
from app.services.activity_logger import ActivityLogger, get_activity_logger, snapshot
from app.tenancy import get_center_owned

router = APIRouter()

_FIELDS = ("name", "quantity", "price", "note")


@router.get("/", response_model=list[InventoryItemOut])
async def list_items(
    low_stock: bool = Query(False, description="Only items below the low-stock threshold"),
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("inventory.read")),
):
    stmt = select(InventoryItem).where(InventoryItem.center_id == principal.center_id)
    if low_stock:
        stmt = stmt.where(InventoryItem.quantity < settings.low_stock_threshold)
    result = await db.execute(stmt.order_by(InventoryItem.name))
    return result.scalars().all()


@router.post("/", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
async def create_item(
    body: InventoryItemCreate,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("inventory.write")),
):
    item = InventoryItem(center_id=principal.center_id, **body.model_dump())
    db.add(item)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.INVENTORY,
        f"Added item: {item.name}",
        target_id=item.id, target_name=item.name,
        details={"new": snapshot(item, _FIELDS)},
    )
    return item


@router.get("/{item_id}", response_model=InventoryItemOut)
async def get_item(
    item_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("inventory.read")),
):
    return await get_center_owned(db, InventoryItem, item_id, principal.center_id)


@router.patch("/{item_id}", response_model=InventoryItemOut)
async def update_item(
    item_id: str,
    body: InventoryItemUpdate,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("inventory.write")),
):
    item = await get_center_owned(db, InventoryItem, item_id, principal.center_id)
    old = snapshot(item, _FIELDS)

    for key, value in body.model_dump(exclude_unset=True).items():
        setattr(item, key, value)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.INVENTORY,
        f"Updated item: {item.name}",
        target_id=item.id, target_name=item.name,
        details={"old": old, "new": snapshot(item, _FIELDS)},
    )
    return item


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: str,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("inventory.write")),
):
    item = await get_center_owned(db, InventoryItem, item_id, principal.center_id)
    deleted = snapshot(item, _FIELDS)
    await db.delete(item)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.INVENTORY,
        f"Deleted item: {deleted['name']}",
        target_id=item_id, target_name=deleted["name"],
        details={"deleted": deleted},
    )
