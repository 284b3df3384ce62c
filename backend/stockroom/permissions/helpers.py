# Overview: Lookups over the static permission table.

from .definitions import PERMISSION_DEFINITIONS


def _as_dict(perm) -> dict:
    code, name, description, category = perm
    return {
        "code": code,
        "name": name,
        "description": description,
        "category": category,
    }


def get_all_permission_codes() -> list[str]:
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def get_permissions_by_category(category: str) -> list[dict]:
    return [_as_dict(perm) for perm in PERMISSION_DEFINITIONS if perm[3] == category]


def get_permission_definition(code: str) -> dict | None:
    """Full definition for a permission code, or None if the code is unknown."""
    for perm in PERMISSION_DEFINITIONS:
        if perm[0] == code:
            return _as_dict(perm)
    return None


def list_permission_definitions() -> list[dict]:
    return [_as_dict(perm) for perm in PERMISSION_DEFINITIONS]


def validate_permission_code(code: str) -> bool:
    return get_permission_definition(code) is not None
