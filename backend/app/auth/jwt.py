"""JWT token creation and decoding.

Token claims:
  - sub:          principal id (`admin` or `center-<center_id>`)
  - role:         "admin" | "center"
  - permissions:  list of effective permission strings
  - center_id:    owning center (center principals only)
  - center_name:  display name at login time
  - email:        login email
  - sid:          id of the CenterSession opened at login
  - type:         "access"
  - exp:          expiry timestamp
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from app.config import settings

ALGORITHM = settings.jwt_algorithm


def create_access_token(
    subject: str,
    role: str,
    permissions: list[str],
    *,
    center_id: str | None = None,
    center_name: str | None = None,
    email: str | None = None,
    session_id: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": subject,
        "role": role,
        "permissions": permissions,
        "type": "access",
        "exp": expire,
    }
    if center_id:
        payload["center_id"] = center_id
        payload["center_name"] = center_name or ""
    if email:
        payload["email"] = email
    if session_id:
        payload["sid"] = session_id
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
