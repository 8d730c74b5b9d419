"""Permission sets for the two kinds of principal.

Design:
  - Admins hold every permission.
  - Center logins hold the write permissions for their own center's data.
  - The effective set is embedded in the JWT so checks are token-only.

Permission naming: `<resource>.<action>`
"""

from __future__ import annotations


ALL_PERMISSIONS: set[str] = {
    # Cross-center administration
    "centers.manage",
    "reports.global",
    "activities.global",

    # Center-scoped data
    "inventory.read",
    "inventory.write",
    "sales.read",
    "sales.write",
    "maintenance.read",
    "maintenance.write",
    "customers.read",
    "customers.write",
    "technicians.read",
    "technicians.write",

    # Own center reporting / audit
    "reports.read",
    "activities.read",
    "sessions.manage",
}


ROLE_DEFAULTS: dict[str, set[str]] = {
    "admin": ALL_PERMISSIONS.copy(),

    "center": {
        "inventory.read", "inventory.write",
        "sales.read", "sales.write",
        "maintenance.read", "maintenance.write",
        "customers.read", "customers.write",
        "technicians.read", "technicians.write",
        "reports.read",
        "activities.read",
        "sessions.manage",
    },
}


def resolve_permissions(
    role: str,
    custom_overrides: dict[str, bool] | None = None,
) -> list[str]:
    """Compute effective permissions: role defaults plus {perm: bool} overrides."""
    base = ROLE_DEFAULTS.get(role, set()).copy()

    if custom_overrides:
        for perm, granted in custom_overrides.items():
            if perm not in ALL_PERMISSIONS:
                continue
            if granted:
                base.add(perm)
            else:
                base.discard(perm)

    return sorted(base)


def has_permission(user_permissions: list[str] | set[str], required: str) -> bool:
    return required in user_permissions
