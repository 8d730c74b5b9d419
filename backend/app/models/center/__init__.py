"""Center-owned models (every row carries a `center_id`)."""

from app.models.center.activity import ActivityCategory, CenterActivity
from app.models.center.session import CenterSession
from app.models.center.technician import Technician
from app.models.center.customer import Customer, CustomerType
from app.models.center.inventory import InventoryItem
from app.models.center.sale import Sale
from app.models.center.maintenance import MaintenanceRequest, MaintenanceStatus

__all__ = [
    "ActivityCategory",
    "CenterActivity",
    "CenterSession",
    "Technician",
    "Customer",
    "CustomerType",
    "InventoryItem",
    "Sale",
    "MaintenanceRequest",
    "MaintenanceStatus",
]
