# Overview: Permission system package.
# Re-exports all public APIs for convenient imports.

from .categories import PermissionCategory
from .definitions import (
    PERMISSION_DEFINITIONS,
    PRODUCT_PERMISSIONS,
    INVOICE_PERMISSIONS,
    PURCHASE_ORDER_PERMISSIONS,
    SUPPLIER_PERMISSIONS,
    REPORT_PERMISSIONS,
)
from .roles import (
    DEFAULT_ROLE_PERMISSIONS,
    SUPERVISOR_PERMISSIONS,
    ROLES,
    ASSIGNABLE_ROLES,
    STOCK_MOVEMENT_ROLES,
    ROLE_MANAGER,
    ROLE_SUPERVISOR,
    ROLE_STAFF,
    ROLE_PENDING,
)
from .helpers import (
    get_all_permission_codes,
    get_permissions_by_category,
    get_permission_definition,
    list_permission_definitions,
    validate_permission_code,
)
from .resolver import has_permission, resolve_permissions, effective_permissions

__all__ = [
    "PermissionCategory",
    "PERMISSION_DEFINITIONS",
    "PRODUCT_PERMISSIONS",
    "INVOICE_PERMISSIONS",
    "PURCHASE_ORDER_PERMISSIONS",
    "SUPPLIER_PERMISSIONS",
    "REPORT_PERMISSIONS",
    "DEFAULT_ROLE_PERMISSIONS",
    "SUPERVISOR_PERMISSIONS",
    "ROLES",
    "ASSIGNABLE_ROLES",
    "STOCK_MOVEMENT_ROLES",
    "ROLE_MANAGER",
    "ROLE_SUPERVISOR",
    "ROLE_STAFF",
    "ROLE_PENDING",
    "get_all_permission_codes",
    "get_permissions_by_category",
    "get_permission_definition",
    "list_permission_definitions",
    "validate_permission_code",
    "has_permission",
    "resolve_permissions",
    "effective_permissions",
]
