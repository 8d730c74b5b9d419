"""The authenticated caller, rebuilt from token claims on every request.

The browser holds nothing but the bearer token. A Principal is created at
login, invalidated at logout (token revoked and session closed) and
re-validated against the store on demand by `GET /api/auth/validate`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

ADMIN_SUBJECT = "admin"
SYSTEM_SUBJECT = "system"
UNKNOWN_ACTOR = "Unknown user"


def center_subject(center_id: str) -> str:
    return f"center-{center_id}"


@dataclass(frozen=True)
class Principal:
    subject: str
    role: str
    permissions: tuple[str, ...] = ()
    email: str | None = None
    center_id: str | None = None
    center_name: str | None = None
    session_id: str | None = None
    token: str | None = field(default=None, repr=False)
    expires_at: float | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def actor_id(self) -> str:
        return self.subject or self.email or UNKNOWN_ACTOR

    @property
    def actor_name(self) -> str:
        """Display name derived from the login email."""
        if self.role == SYSTEM_SUBJECT:
            return "System"
        if self.email and "@" in self.email:
            return self.email.split("@", 1)[0] or UNKNOWN_ACTOR
        return self.email or UNKNOWN_ACTOR

    @classmethod
    def from_claims(cls, payload: dict, token: str | None = None) -> "Principal":
        return cls(
            subject=payload.get("sub", ""),
            role=payload.get("role", ""),
            permissions=tuple(payload.get("permissions", [])),
            email=payload.get("email"),
            center_id=payload.get("center_id"),
            center_name=payload.get("center_name"),
            session_id=payload.get("sid"),
            token=token,
            expires_at=payload.get("exp"),
        )

    def scoped_to(self, center_id: str, center_name: str | None) -> "Principal":
        """Same caller acting on behalf of a specific center (admin use)."""
        return replace(self, center_id=center_id, center_name=center_name)


def system_principal(center_id: str, center_name: str | None = None) -> Principal:
    """Principal for actions the service takes on its own (session expiry)."""
    return Principal(
        subject=SYSTEM_SUBJECT,
        role=SYSTEM_SUBJECT,
        center_id=center_id,
        center_name=center_name,
    )
