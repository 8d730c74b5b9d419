"""Center-scoped sales routes.

A sale takes stock out of one inventory item. The item's quantity is
checked and decremented in the same transaction that records the sale.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_acting_principal, require_permission
from app.auth.principal import Principal
from app.database import get_db
from app.middleware.exceptions import BusinessLogicError
from app.models.center.activity import ActivityCategory
from app.models.center.inventory import InventoryItem
from app.models.center.sale import Sale
from app.schemas.sale import SaleCreate, SaleOut
from app.services.activity_logger import ActivityLogger, get_activity_logger
from app.tenancy import get_center_owned

router = APIRouter()


@router.get("/", response_model=list[SaleOut])
async def list_sales(
    limit: int = Query(100, ge=1, le=1000),
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    _perm: Principal = Depends(require_permission("sales.read")),
):
    result = await db.execute(
        select(Sale)
        .where(Sale.center_id == principal.center_id)
        .order_by(Sale.date.desc())
        .limit(limit)
    )
    return result.scalars().all()


@router.post("/", response_model=SaleOut, status_code=status.HTTP_201_CREATED)
async def create_sale(
    body: SaleCreate,
    principal: Principal = Depends(get_acting_principal),
    db: AsyncSession = Depends(get_db),
    activity_logger: ActivityLogger = Depends(get_activity_logger),
    _perm: Principal = Depends(require_permission("sales.write")),
):
    item = await get_center_owned(db, InventoryItem, body.item_id, principal.center_id)
    if item.quantity < body.quantity:
        raise BusinessLogicError(
            f"Insufficient stock for {item.name}: {item.quantity} available",
            error_code="INSUFFICIENT_STOCK",
        )

    item.quantity -= body.quantity
    sale = Sale(
        center_id=principal.center_id,
        center_name=principal.center_name,
        item_id=item.id,
        item_name=item.name,
        quantity=body.quantity,
        total_price=round(item.price * body.quantity, 2),
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        note=body.note,
        created_by=principal.actor_name,
    )
    db.add(sale)
    await db.commit()

    await activity_logger.log(
        principal, ActivityCategory.SALES,
        f"Sold {sale.quantity} x {sale.item_name} to {sale.customer_name}",
        target_id=sale.id, target_name=sale.item_name,
        details={
            "sale_id": sale.id,
            "item_id": item.id,
            "quantity": sale.quantity,
            "total_price": sale.total_price,
            "remaining_stock": item.quantity,
            "customer": {"name": sale.customer_name, "phone": sale.customer_phone},
        },
    )
    return sale
