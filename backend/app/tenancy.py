"""Request-scoped center context.

Key components:
  - _center_ctx      ContextVar holding the center id for the current request
  - set / get / clear helpers for the ContextVar
  - validate_center_id()   rejects malformed ids taken from token claims
  - get_center_owned()     loads a row only if it belongs to the given center
"""

import re
from contextvars import ContextVar

from sqlalchemy import select

from app.middleware.exceptions import CenterContextError, ResourceNotFoundError

_center_ctx: ContextVar[str | None] = ContextVar("_center_ctx", default=None)


def set_current_center(center_id: str) -> None:
    _center_ctx.set(center_id)


def get_current_center() -> str:
    """Return the current center id or raise if unset."""
    center_id = _center_ctx.get()
    if center_id is None:
        raise CenterContextError(
            "No center context: this endpoint requires a center login"
        )
    return center_id


def peek_current_center() -> str | None:
    return _center_ctx.get()


def clear_center_context() -> None:
    _center_ctx.set(None)


_CENTER_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,36}$")


def validate_center_id(center_id: str) -> str:
    if not _CENTER_ID_RE.match(center_id):
        raise ValueError(f"Invalid center id: {center_id!r}")
    return center_id


async def get_center_owned(db, model, row_id: str, center_id: str):
    """Fetch a center-owned row by id, or raise 404 if it belongs elsewhere."""
    result = await db.execute(
        select(model).where(model.id == row_id, model.center_id == center_id)
    )
    row = result.scalar_one_or_none()
    if row is None:
        raise ResourceNotFoundError(model.__name__, row_id)
    return row
