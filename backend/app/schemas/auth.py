from pydantic import BaseModel, EmailStr

from app.schemas.session import SessionOut


# ── Login ────────────────────────────────────────────────────

class CenterLoginRequest(BaseModel):
    center_id: str
    email: EmailStr
    password: str


class AdminLoginRequest(BaseModel):
    password: str


class PrincipalOut(BaseModel):
    subject: str
    role: str
    email: str | None = None
    center_id: str | None = None
    center_name: str | None = None
    session_id: str | None = None
    permissions: list[str]


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    principal: PrincipalOut
    session: SessionOut | None = None


# ── Re-validation ────────────────────────────────────────────

class ValidateResponse(BaseModel):
    """Result of checking a token's session against the store."""
    valid: bool
    reason: str | None = None
    session: SessionOut | None = None
