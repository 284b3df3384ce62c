# Overview: Service-layer operations for the dashboard; aggregate counts over the catalog.

from sqlalchemy import func

from ..extensions import db
from ..models import Product, Invoice, Supplier, PurchaseOrder


def get_dashboard_stats() -> dict:
    """
    Headline numbers for the dashboard.

    inventory_value_cents = sum(quantity_in_stock * unit_price_cents)
    """
    inventory_value = db.session.query(
        func.coalesce(func.sum(Product.quantity_in_stock * Product.unit_price_cents), 0)
    ).scalar()

    low_stock = db.session.query(func.count(Product.id)).filter(
        Product.quantity_in_stock < Product.threshold
    ).scalar()

    pending_orders = db.session.query(func.count(PurchaseOrder.id)).filter(
        PurchaseOrder.delivery_status == "pending"
    ).scalar()

    return {
        "total_products": db.session.query(func.count(Product.id)).scalar(),
        "total_invoices": db.session.query(func.count(Invoice.id)).scalar(),
        "total_suppliers": db.session.query(func.count(Supplier.id)).scalar(),
        "total_purchase_orders": db.session.query(func.count(PurchaseOrder.id)).scalar(),
        "low_stock_products": low_stock,
        "pending_orders": pending_orders,
        "inventory_value_cents": int(inventory_value or 0),
    }


def list_low_stock_products(limit: int = 10) -> list[Product]:
    """Lowest stock relative to threshold first."""
    return (
        db.session.query(Product)
        .filter(Product.quantity_in_stock < Product.threshold)
        .order_by((Product.quantity_in_stock - Product.threshold).asc(), Product.name.asc())
        .limit(limit)
        .all()
    )
