"""Application errors and the handlers that render them.

Every error leaves the API in one envelope:
    {"error": {"code": "...", "message": "...", "details": {...}}}

Routers and services raise the `CenterOpsException` subclasses below (or
FastAPI's HTTPException); the handlers registered in `main.py` turn them,
request validation failures and database errors into that envelope.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class CenterOpsException(Exception):
    """Base for errors that map straight onto an error response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        self.message = message
        if error_code:
            self.error_code = error_code
        super().__init__(message)


class BusinessLogicError(CenterOpsException):
    """A well-formed request the center's data cannot satisfy (e.g. stock)."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "BUSINESS_LOGIC_ERROR"


class ResourceNotFoundError(CenterOpsException):
    """Missing row, or a row that belongs to another center."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}")


class CenterContextError(CenterOpsException):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "CENTER_CONTEXT_REQUIRED"

    def __init__(self, message: str = "Center context required"):
        super().__init__(message)


class SessionStateError(CenterOpsException):
    """A session transition that the Open → Closed machine does not allow."""

    status_code = status.HTTP_409_CONFLICT
    error_code = "SESSION_STATE_CONFLICT"


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: dict | None = None,
    headers: dict | None = None,
) -> JSONResponse:
    error = {"code": error_code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(
        status_code=status_code, content={"error": error}, headers=headers
    )


def _request_info(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


# ── Handlers ─────────────────────────────────────────────────

async def centerops_exception_handler(
    request: Request, exc: CenterOpsException
) -> JSONResponse:
    logger.warning(
        "%s %s -> %s: %s", request.method, request.url.path,
        exc.error_code, exc.message,
        extra={"error_code": exc.error_code, **_request_info(request)},
    )
    return create_error_response(exc.status_code, exc.message, exc.error_code)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s %s -> HTTP %d: %s", request.method, request.url.path,
            exc.status_code, exc.detail, extra=_request_info(request),
        )
    return create_error_response(
        exc.status_code,
        str(exc.detail),
        f"HTTP_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {
            "field": " -> ".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.info(
        "%s %s -> %d validation error(s)", request.method, request.url.path,
        len(errors), extra=_request_info(request),
    )
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Validation error",
        "VALIDATION_ERROR",
        details={"errors": errors},
    )


async def integrity_exception_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Constraint violations that slipped past the routers' own checks."""
    logger.error(
        "%s %s -> integrity error: %s", request.method, request.url.path,
        exc.orig, extra=_request_info(request),
    )
    if "unique" in str(exc.orig).lower():
        return create_error_response(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "A record with this value already exists",
            "DUPLICATE_RECORD",
        )
    return create_error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "Database constraint violation",
        "INTEGRITY_ERROR",
    )


async def operational_exception_handler(
    request: Request, exc: OperationalError
) -> JSONResponse:
    logger.error(
        "%s %s -> database unavailable: %s", request.method, request.url.path,
        exc.orig, extra=_request_info(request),
    )
    return create_error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable. Please try again.",
        "DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "%s %s -> unhandled %s", request.method, request.url.path,
        type(exc).__name__, extra=_request_info(request), exc_info=exc,
    )
    return create_error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred. Please try again later.",
        "INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    app.add_exception_handler(CenterOpsException, centerops_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
