# Overview: Permission category constants for grouping related permissions.


class PermissionCategory:
    """Permission categories for organization and UI display."""
    PRODUCTS = "PRODUCTS"
    INVOICES = "INVOICES"
    PURCHASE_ORDERS = "PURCHASE_ORDERS"
    SUPPLIERS = "SUPPLIERS"
    REPORTS = "REPORTS"
