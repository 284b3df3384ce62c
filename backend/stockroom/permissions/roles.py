# Overview: Built-in roles and the permissions each one carries by default.

from .definitions import PERMISSION_DEFINITIONS


ROLE_MANAGER = "manager"
ROLE_SUPERVISOR = "supervisor"
ROLE_STAFF = "staff"
ROLE_PENDING = "pending"

ROLES = (ROLE_MANAGER, ROLE_SUPERVISOR, ROLE_STAFF, ROLE_PENDING)

# Roles a manager may assign from the users page. "pending" is only set at sign-up.
ASSIGNABLE_ROLES = (ROLE_MANAGER, ROLE_SUPERVISOR, ROLE_STAFF)

SUPERVISOR_PERMISSIONS = frozenset({
    "can_add_products",
    "can_edit_products",
    "can_add_invoices",
    "can_edit_invoices",
    "can_add_purchase_orders",
    "can_edit_purchase_orders",
    "can_add_suppliers",
    "can_edit_suppliers",
    "can_view_insights",
    "can_export_data",
})

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_MANAGER: frozenset(perm[0] for perm in PERMISSION_DEFINITIONS),
    ROLE_SUPERVISOR: SUPERVISOR_PERMISSIONS,
    ROLE_STAFF: frozenset(),
    ROLE_PENDING: frozenset(),
}

# Roles allowed to record manual stock movements.
STOCK_MOVEMENT_ROLES = (ROLE_MANAGER, ROLE_SUPERVISOR)
