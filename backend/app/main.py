from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.middleware.tenant import TenantMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.exceptions import register_exception_handlers
from app.routers import (
    activities,
    admin,
    auth,
    centers,
    customers,
    health,
    inventory,
    maintenance,
    reports,
    sales,
    sessions,
    technicians,
)
from app.services.scheduler import lifespan

app = FastAPI(
    title="CenterOps",
    description="Multi-center inventory, sales & maintenance dashboard",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Exception Handlers ───────────────────────────────────────
register_exception_handlers(app)

# ── Middleware (last added runs first) ───────────────────────
# Login throttling
app.add_middleware(RateLimitMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Center context (outermost - rejects bad tokens early)
app.add_middleware(TenantMiddleware)

# ── Routers ──────────────────────────────────────────────────
# Public / auth
app.include_router(health.router)
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])

# Admin (cross-center)
app.include_router(centers.router, prefix="/api/centers", tags=["centers"])
app.include_router(admin.router, prefix="/api/admin", tags=["admin"])

# Center-scoped (center login, or admin with ?center_id=)
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
app.include_router(activities.router, prefix="/api/activities", tags=["activities"])
app.include_router(technicians.router, prefix="/api/technicians", tags=["technicians"])
app.include_router(customers.router, prefix="/api/customers", tags=["customers"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["inventory"])
app.include_router(sales.router, prefix="/api/sales", tags=["sales"])
app.include_router(maintenance.router, prefix="/api/maintenance", tags=["maintenance"])
app.include_router(reports.router, prefix="/api/reports", tags=["reports"])
