# Overview: All permission definitions organized by category.
# Each permission is defined as: (code, name, description, category)

from .categories import PermissionCategory


# -- PRODUCTS --

PRODUCT_PERMISSIONS = [
    (
        "can_add_products",
        "Add Products",
        "Create products in the catalog",
        PermissionCategory.PRODUCTS,
    ),
    (
        "can_edit_products",
        "Edit Products",
        "Edit product details and photos",
        PermissionCategory.PRODUCTS,
    ),
    (
        "can_delete_products",
        "Delete Products",
        "Remove products from the catalog",
        PermissionCategory.PRODUCTS,
    ),
]


# -- INVOICES --

INVOICE_PERMISSIONS = [
    (
        "can_add_invoices",
        "Add Invoices",
        "Create invoices (deducts stock for invoiced items)",
        PermissionCategory.INVOICES,
    ),
    (
        "can_edit_invoices",
        "Edit Invoices",
        "Edit invoice header fields and photos",
        PermissionCategory.INVOICES,
    ),
    (
        "can_delete_invoices",
        "Delete Invoices",
        "Delete invoices",
        PermissionCategory.INVOICES,
    ),
]


# -- PURCHASE ORDERS --

PURCHASE_ORDER_PERMISSIONS = [
    (
        "can_add_purchase_orders",
        "Add Purchase Orders",
        "Create purchase orders to suppliers",
        PermissionCategory.PURCHASE_ORDERS,
    ),
    (
        "can_edit_purchase_orders",
        "Edit Purchase Orders",
        "Edit purchase orders and change delivery status",
        PermissionCategory.PURCHASE_ORDERS,
    ),
    (
        "can_delete_purchase_orders",
        "Delete Purchase Orders",
        "Delete purchase orders that were not delivered",
        PermissionCategory.PURCHASE_ORDERS,
    ),
]


# -- SUPPLIERS --

SUPPLIER_PERMISSIONS = [
    (
        "can_add_suppliers",
        "Add Suppliers",
        "Register suppliers",
        PermissionCategory.SUPPLIERS,
    ),
    (
        "can_edit_suppliers",
        "Edit Suppliers",
        "Edit supplier details",
        PermissionCategory.SUPPLIERS,
    ),
    (
        "can_delete_suppliers",
        "Delete Suppliers",
        "Delete suppliers without purchase orders",
        PermissionCategory.SUPPLIERS,
    ),
]


# -- REPORTS --

REPORT_PERMISSIONS = [
    (
        "can_view_insights",
        "View AI Insights",
        "Generate the AI inventory analysis",
        PermissionCategory.REPORTS,
    ),
    (
        "can_export_data",
        "Export Data",
        "Download CSV exports of products, invoices and stock movements",
        PermissionCategory.REPORTS,
    ),
]


PERMISSION_DEFINITIONS = (
    PRODUCT_PERMISSIONS
    + INVOICE_PERMISSIONS
    + PURCHASE_ORDER_PERMISSIONS
    + SUPPLIER_PERMISSIONS
    + REPORT_PERMISSIONS
)
