"""Maintenance request business logic.

Status changes append to the request's `lifecycle` list; moving into
`completed` stamps `completed_at` and deducts the listed parts from the
center's inventory. A part whose item is missing or short on stock is
skipped rather than driving the quantity negative.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.center.inventory import InventoryItem
from app.models.center.maintenance import MaintenanceRequest, MaintenanceStatus

logger = logging.getLogger(__name__)


def parts_total(parts: list[dict]) -> float:
    return round(
        sum(p.get("quantity", 0) * p.get("unit_price", 0) for p in parts or []), 2
    )


def lifecycle_entry(
    status: str, action: str, performed_by: str, notes: str | None = None
) -> dict:
    return {
        "timestamp": utcnow().isoformat(),
        "status": status,
        "action": action,
        "performed_by": performed_by,
        "notes": notes,
    }


async def deduct_parts(
    db: AsyncSession, center_id: str, parts: list[dict]
) -> tuple[list[dict], list[dict]]:
    """Take `parts` out of stock. Returns (deducted, skipped)."""
    deducted, skipped = [], []
    for part in parts or []:
        result = await db.execute(
            select(InventoryItem).where(
                InventoryItem.id == part["item_id"],
                InventoryItem.center_id == center_id,
            )
        )
        item = result.scalar_one_or_none()
        qty = int(part.get("quantity", 0))
        if item is None or item.quantity < qty:
            skipped.append(part)
            continue
        item.quantity -= qty
        deducted.append(part)

    if skipped:
        logger.warning(
            "Center %s: %d part(s) not deducted (missing or short stock)",
            center_id, len(skipped),
        )
    return deducted, skipped


async def change_status(
    db: AsyncSession,
    request: MaintenanceRequest,
    new_status: MaintenanceStatus,
    performed_by: str,
    notes: str | None = None,
) -> dict:
    """Apply a status change in the current transaction.

    Returns a details dict describing the change for the activity record.
    """
    old_status = request.status
    details: dict = {"old_status": old_status, "new_status": new_status.value}

    request.status = new_status.value
    request.lifecycle = [
        *(request.lifecycle or []),
        lifecycle_entry(
            new_status.value,
            f"Status changed from {old_status} to {new_status.value}",
            performed_by,
            notes,
        ),
    ]

    if (
        new_status is MaintenanceStatus.COMPLETED
        and old_status != MaintenanceStatus.COMPLETED.value
    ):
        request.completed_at = utcnow()
        deducted, skipped = await deduct_parts(db, request.center_id, request.parts)
        details["parts_deducted"] = deducted
        if skipped:
            details["parts_skipped"] = skipped
    elif new_status is not MaintenanceStatus.COMPLETED:
        request.completed_at = None

    return details
