# Overview: Pure permission resolution from a role and a set of per-user grants.

"""
Permission resolution rules:

- manager: every permission, grants are irrelevant
- supervisor: the fixed supervisor allow-list, plus any explicit grants
- staff / pending: explicit grants only

Unknown permission names are never allowed, even for managers.
"""

from typing import Iterable

from .definitions import PERMISSION_DEFINITIONS
from .roles import ROLE_MANAGER, ROLE_SUPERVISOR, SUPERVISOR_PERMISSIONS

_KNOWN_CODES = frozenset(perm[0] for perm in PERMISSION_DEFINITIONS)


def has_permission(role: str | None, granted: Iterable[str], permission: str) -> bool:
    """Answer whether a user with `role` and `granted` may use `permission`."""
    if permission not in _KNOWN_CODES:
        return False

    if role == ROLE_MANAGER:
        return True

    if role == ROLE_SUPERVISOR and permission in SUPERVISOR_PERMISSIONS:
        return True

    return permission in set(granted)


def resolve_permissions(role: str | None, granted: Iterable[str]) -> dict[str, bool]:
    """Capability map for every known permission, in definition order."""
    granted = frozenset(granted)
    return {
        perm[0]: has_permission(role, granted, perm[0])
        for perm in PERMISSION_DEFINITIONS
    }


def effective_permissions(role: str | None, granted: Iterable[str]) -> set[str]:
    """Set of permission codes that resolve to allowed."""
    return {code for code, allowed in resolve_permissions(role, granted).items() if allowed}
