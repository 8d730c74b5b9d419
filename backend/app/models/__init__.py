"""Aggregate model imports for Alembic auto-detection."""

# Shared across centers
from app.models.public.center import Center  # noqa: F401
from app.models.public.global_activity import GlobalActivity  # noqa: F401

# Center-owned: audit trail
from app.models.center.activity import CenterActivity  # noqa: F401
from app.models.center.session import CenterSession  # noqa: F401

# Center-owned: reference / transactional
from app.models.center.technician import Technician  # noqa: F401
from app.models.center.customer import Customer  # noqa: F401
from app.models.center.inventory import InventoryItem  # noqa: F401
from app.models.center.sale import Sale  # noqa: F401
from app.models.center.maintenance import MaintenanceRequest  # noqa: F401
