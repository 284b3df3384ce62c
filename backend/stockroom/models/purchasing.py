from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z, to_iso_date


class PurchaseOrder(db.Model):
    """
    Order placed with a supplier.

    STATUS LIFECYCLE:
    - pending -> in_transit | delivered | cancelled
    - in_transit -> delivered | cancelled
    - delivered, cancelled: terminal

    Reaching "delivered" receives every item into stock as a "purchase"
    movement, in the same transaction as the status change.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.Index("ix_purchase_orders_status", "delivery_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # PO-<epoch millis>
    order_number = db.Column(db.String(64), nullable=False, unique=True)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    # Snapshot so the order stays readable if the supplier is renamed
    supplier_name = db.Column(db.String(255), nullable=False)

    order_date = db.Column(db.Date, nullable=False)
    expected_delivery = db.Column(db.Date, nullable=True)

    # pending | in_transit | delivered | cancelled
    delivery_status = db.Column(db.String(16), nullable=False, default="pending")

    total_cents = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    delivered_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("purchase_orders", lazy=True))
    created_by = db.relationship("User")
    items = db.relationship(
        "PurchaseOrderItem",
        backref="purchase_order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder id={self.id} number={self.order_number!r} status={self.delivery_status}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier_name,
            "order_date": to_iso_date(self.order_date),
            "expected_delivery": to_iso_date(self.expected_delivery),
            "delivery_status": self.delivery_status,
            "total_cents": self.total_cents,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "delivered_at": to_utc_z(self.delivered_at) if self.delivered_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseOrderItem(db.Model):
    __tablename__ = "purchase_order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_purchase_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product")

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_order_id": self.purchase_order_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
        }
