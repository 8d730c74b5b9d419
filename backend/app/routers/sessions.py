"""Center session routes.

  GET  /current            the center's open session, if any
  POST /start              open a session (returns the open one if present)
  POST /{id}/end           close a session
  GET  /                   the center's session history, newest first

Admins act on a center with `?center_id=`.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from app.auth.deps import get_acting_principal, require_permission
from app.auth.principal import Principal
from app.schemas.session import CurrentSessionResponse, SessionOut
from app.services.sessions import SessionManager, get_session_manager

router = APIRouter()


@router.get("/current", response_model=CurrentSessionResponse)
async def current_session(
    principal: Principal = Depends(get_acting_principal),
    sessions: SessionManager = Depends(get_session_manager),
    _perm: Principal = Depends(require_permission("sessions.manage")),
):
    active = await sessions.get_active_session(principal.center_id)
    return CurrentSessionResponse(
        session=SessionOut.model_validate(active) if active else None
    )


@router.post("/start", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def start_session(
    response: Response,
    principal: Principal = Depends(get_acting_principal),
    sessions: SessionManager = Depends(get_session_manager),
    _perm: Principal = Depends(require_permission("sessions.manage")),
):
    session, created = await sessions.ensure_session(principal.center_id, principal)
    if not created:
        response.status_code = status.HTTP_200_OK
    return session


@router.post("/{session_id}/end", response_model=SessionOut)
async def end_session(
    session_id: str,
    principal: Principal = Depends(get_acting_principal),
    sessions: SessionManager = Depends(get_session_manager),
    _perm: Principal = Depends(require_permission("sessions.manage")),
):
    return await sessions.end_session(
        session_id, principal.center_id, principal, reason="manual"
    )


@router.get("/", response_model=list[SessionOut])
async def list_sessions(
    limit: int = Query(50, ge=1, le=500),
    principal: Principal = Depends(get_acting_principal),
    sessions: SessionManager = Depends(get_session_manager),
    _perm: Principal = Depends(require_permission("sessions.manage")),
):
    return await sessions.list_center_sessions(principal.center_id, limit=limit)
