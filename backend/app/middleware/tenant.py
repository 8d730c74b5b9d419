"""Center middleware: resolves the center context from the JWT on every request.

Flow:
  1. Extract Bearer token from Authorization header
  2. Decode JWT → get `center_id` claim
  3. Validate the id
  4. Set ContextVar so downstream code can read it (app.tenancy)
  5. After the response, clear the ContextVar

Admin tokens carry no `center_id`; routes that need a center resolve it
from `?center_id=` through `get_acting_principal` instead.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.auth.jwt import decode_token
from app.tenancy import (
    clear_center_context,
    set_current_center,
    validate_center_id,
)

# Routes that never require auth: don't reject expired tokens here
_PUBLIC_PREFIXES = (
    "/api/auth/login",
    "/api/auth/admin-login",
    "/api/auth/centers",
    "/docs",
    "/openapi.json",
    "/health",
)


class TenantMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        auth_header = request.headers.get("authorization", "")
        path = request.url.path

        if auth_header.startswith("Bearer "):
            token = auth_header[7:]
            payload = decode_token(token)

            if not payload:
                # Token present but expired/malformed: 401 so the dashboard
                # sends the user back to the login screen.
                clear_center_context()
                if not any(path.startswith(p) for p in _PUBLIC_PREFIXES):
                    return JSONResponse(
                        status_code=401,
                        content={"detail": "Token expired or invalid"},
                        headers={"WWW-Authenticate": "Bearer"},
                    )
            else:
                center_id = payload.get("center_id")
                if center_id:
                    try:
                        validate_center_id(center_id)
                        set_current_center(center_id)
                    except ValueError:
                        clear_center_context()
                else:
                    clear_center_context()
        else:
            clear_center_context()

        try:
            response = await call_next(request)
        finally:
            clear_center_context()

        return response
