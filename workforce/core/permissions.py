"""
Organization role hierarchy and permission resolution.

Roles are ordered viewer < member < admin < owner. Each role's permission set
is a superset of the role below it; a membership may carry extra custom grants
on top of its role.
"""

from __future__ import annotations

from typing import Iterable, Optional

from workforce_shared.schemas.common import ROLE_ORDER, OrgRole, Permission

_VIEWER = {Permission.READ}
_MEMBER = _VIEWER | {Permission.CREATE}
_ADMIN = _MEMBER | {Permission.UPDATE, Permission.DELETE, Permission.MANAGE_MEMBERS}
_OWNER = _ADMIN | {Permission.MANAGE_ORG, Permission.BILLING}

ROLE_PERMISSIONS: dict[OrgRole, frozenset[Permission]] = {
    OrgRole.VIEWER: frozenset(_VIEWER),
    OrgRole.MEMBER: frozenset(_MEMBER),
    OrgRole.ADMIN: frozenset(_ADMIN),
    OrgRole.OWNER: frozenset(_OWNER),
}


def parse_role(role: str | OrgRole | None) -> Optional[OrgRole]:
    """Return the OrgRole for a stored role string, or None if unknown."""
    if role is None:
        return None
    try:
        return OrgRole(role)
    except ValueError:
        return None


def role_level(role: str | OrgRole | None) -> int:
    """1-based position in the hierarchy; unknown roles rank 0."""
    parsed = parse_role(role)
    if parsed is None:
        return 0
    return ROLE_ORDER.index(parsed) + 1


def meets_min_role(role: str | OrgRole | None, min_role: OrgRole) -> bool:
    return role_level(role) >= role_level(min_role)


def effective_permissions(role: str | OrgRole | None, extra: Iterable[str] = ()) -> list[str]:
    """Role permissions plus custom grants, sorted and de-duplicated."""
    parsed = parse_role(role)
    granted = {p.value for p in ROLE_PERMISSIONS.get(parsed, frozenset())} if parsed else set()
    granted.update(p for p in extra if p)
    return sorted(granted)


def has_permission(
    role: str | OrgRole | None,
    permission: Permission | str,
    extra: Iterable[str] = (),
) -> bool:
    value = permission.value if isinstance(permission, Permission) else permission
    return value in effective_permissions(role, extra)
