"""Auth routes: center login, admin login, logout, re-validation.

Route overview:
  GET  /centers         active centers for the login screen's picker
  POST /login           center email + password login (opens a session)
  POST /admin-login     admin password login
  POST /logout          close the center's session and revoke the token
  GET  /validate        is the caller's center session still open?
  GET  /me              the principal the token describes
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.deps import get_current_principal
from app.auth.jwt import create_access_token
from app.auth.password import verify_password
from app.auth.permissions import resolve_permissions
from app.auth.principal import ADMIN_SUBJECT, Principal, center_subject
from app.auth.revocation import TokenRevocation
from app.config import settings
from app.database import get_db
from app.models.public.center import Center
from app.schemas.auth import (
    AdminLoginRequest,
    CenterLoginRequest,
    PrincipalOut,
    TokenResponse,
    ValidateResponse,
)
from app.schemas.center import CenterOption
from app.schemas.session import SessionOut
from app.services.sessions import SessionManager, get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter()


# ── Helpers ──────────────────────────────────────────────────

def _principal_out(principal: Principal) -> PrincipalOut:
    return PrincipalOut(
        subject=principal.subject,
        role=principal.role,
        email=principal.email,
        center_id=principal.center_id,
        center_name=principal.center_name,
        session_id=principal.session_id,
        permissions=list(principal.permissions),
    )


# ── GET /centers ─────────────────────────────────────────────

@router.get("/centers", response_model=list[CenterOption])
async def list_login_centers(db: AsyncSession = Depends(get_db)):
    result = await db.execute(
        select(Center).where(Center.is_active == True).order_by(Center.name)  # noqa: E712
    )
    return result.scalars().all()


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(
    body: CenterLoginRequest,
    db: AsyncSession = Depends(get_db),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Center login. Opens (or resumes) the center's session."""
    center = await db.get(Center, body.center_id)
    if not center or center.email.lower() != body.email.lower():
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, center.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not center.is_active:
        raise HTTPException(status_code=403, detail="Center deactivated")

    permissions = resolve_permissions("center", center.custom_permissions)
    principal = Principal(
        subject=center_subject(center.id),
        role="center",
        permissions=tuple(permissions),
        email=center.email,
        center_id=center.id,
        center_name=center.name,
    )

    session, created = await sessions.ensure_session(center.id, principal)
    if not created:
        logger.info("Center %s resumed session %s", center.id, session.id)

    token = create_access_token(
        principal.subject,
        principal.role,
        permissions,
        center_id=center.id,
        center_name=center.name,
        email=center.email,
        session_id=session.id,
    )
    return TokenResponse(
        access_token=token,
        principal=_principal_out(principal),
        session=SessionOut.model_validate(session),
    )


# ── POST /admin-login ───────────────────────────────────────

@router.post("/admin-login", response_model=TokenResponse)
async def admin_login(body: AdminLoginRequest):
    if not verify_password(body.password, settings.admin_password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    permissions = resolve_permissions("admin")
    principal = Principal(
        subject=ADMIN_SUBJECT,
        role="admin",
        permissions=tuple(permissions),
    )
    token = create_access_token(ADMIN_SUBJECT, "admin", permissions)
    return TokenResponse(access_token=token, principal=_principal_out(principal))


# ── POST /logout ─────────────────────────────────────────────

@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    principal: Principal = Depends(get_current_principal),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Close the center's open session, then revoke the bearer token."""
    if principal.center_id:
        active = await sessions.get_active_session(principal.center_id)
        if active is not None:
            await sessions.end_session(
                active.id, principal.center_id, principal, reason="logout"
            )

    if principal.token and principal.expires_at:
        await TokenRevocation.revoke_token(principal.token, principal.expires_at)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── GET /validate ────────────────────────────────────────────

@router.get("/validate", response_model=ValidateResponse)
async def validate(
    principal: Principal = Depends(get_current_principal),
    sessions: SessionManager = Depends(get_session_manager),
):
    """Re-check the caller against the store.

    The dashboard polls this every `session_revalidate_minutes`. A center
    token is valid while its center still has an open session; the admin
    has no session and is valid while the token is.
    """
    if not principal.center_id:
        return ValidateResponse(valid=True)

    active = await sessions.get_active_session(principal.center_id)
    if active is None:
        return ValidateResponse(valid=False, reason="no_active_session")
    return ValidateResponse(valid=True, session=SessionOut.model_validate(active))


# ── GET /me ──────────────────────────────────────────────────

@router.get("/me", response_model=PrincipalOut)
async def me(principal: Principal = Depends(get_current_principal)):
    return _principal_out(principal)
