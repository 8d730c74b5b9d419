"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_current_principal   → decode JWT, check revocation, return Principal
  get_center_principal    → Principal that belongs to a center (or 403)
  require_admin           → restrict to the admin principal
  require_permission(...) → restrict to principals holding permissions
  get_acting_principal    → principal scoped to the center being operated on
"""

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.jwt import decode_token
from app.auth.permissions import has_permission
from app.auth.principal import Principal
from app.auth.revocation import TokenRevocation
from app.database import get_db
from app.models.public.center import Center

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


# ── Core principal dependency ───────────────────────────────

async def get_current_principal(
    token: str = Depends(oauth2_scheme),
) -> Principal:
    """Decode the bearer token and return the caller it describes."""
    payload = decode_token(token)
    if not payload.get("sub") or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if await TokenRevocation.is_revoked(token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    center_id = payload.get("center_id")
    if center_id and await TokenRevocation.is_center_revoked(center_id):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired. Please log in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return Principal.from_claims(payload, token=token)


# ── Center scope ────────────────────────────────────────────

async def get_center_principal(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Return the principal if it is scoped to a center.

    Raises 403 for the admin principal, which has no center of its own.
    """
    if not principal.center_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No center context: log in as a center first",
        )
    return principal


# ── Role / permission checks ────────────────────────────────

async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return principal


def require_permission(*perms: str):
    """Dependency factory: restrict to principals that hold ALL listed permissions.

    Usage:
        @router.post("/")
        async def create_item(principal: Principal = Depends(require_permission("inventory.write"))):
            ...
    """
    async def _check(principal: Principal = Depends(get_current_principal)) -> Principal:
        missing = [p for p in perms if not has_permission(principal.permissions, p)]
        if missing:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permissions: {', '.join(missing)}",
            )
        return principal

    return _check


async def get_acting_principal(
    center_id: str | None = Query(None, description="Target center (admin only)"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Principal:
    """Principal whose `center_id` names the center being operated on.

    Center logins always act on their own center. The admin picks a
    center with `?center_id=`; the center name is looked up so activity
    records carry it.
    """
    if principal.center_id:
        if center_id and center_id != principal.center_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cannot act on another center",
            )
        return principal

    if not principal.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No center context: log in as a center first",
        )
    if not center_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="center_id is required for admin requests",
        )

    result = await db.execute(select(Center.name).where(Center.id == center_id))
    center_name = result.scalar_one_or_none()
    if center_name is None:
        raise HTTPException(status_code=404, detail="Center not found")
    return principal.scoped_to(center_id, center_name)
