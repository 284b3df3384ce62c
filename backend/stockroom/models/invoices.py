from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class Invoice(db.Model):
    """
    Sales/consumption invoice.

    TOTALS (all in cents):
    - subtotal_cents = sum(item.quantity * item.price_per_item_cents)
    - total_cents = subtotal_cents + shipping_cents + tax_cents

    When deduct_stock is set, creation recorded one "sale" StockMovement per
    item (see invoice_service.create_invoice). Editing the header later does
    not touch stock.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # INV-<epoch millis>
    invoice_number = db.Column(db.String(64), nullable=False, unique=True)

    customer_name = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(64), nullable=True)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    shipping_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)

    photo_url = db.Column(db.String(512), nullable=True)
    deduct_stock = db.Column(db.Boolean, nullable=False, default=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier")
    created_by = db.relationship("User")
    items = db.relationship(
        "InvoiceItem",
        backref="invoice",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )

    def recompute_totals(self) -> None:
        self.subtotal_cents = sum(item.subtotal_cents for item in self.items)
        self.total_cents = self.subtotal_cents + (self.shipping_cents or 0) + (self.tax_cents or 0)

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.invoice_number!r} total={self.total_cents}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "customer_name": self.customer_name,
            "phone_number": self.phone_number,
            "supplier_id": self.supplier_id,
            "subtotal_cents": self.subtotal_cents,
            "shipping_cents": self.shipping_cents,
            "tax_cents": self.tax_cents,
            "total_cents": self.total_cents,
            "photo_url": self.photo_url,
            "deduct_stock": self.deduct_stock,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class InvoiceItem(db.Model):
    __tablename__ = "invoice_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_invoice_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=True, index=True)

    # Snapshot of the product name at invoice time
    item_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    price_per_item_cents = db.Column(db.Integer, nullable=False, default=0)
    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoice_id": self.invoice_id,
            "product_id": self.product_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "price_per_item_cents": self.price_per_item_cents,
            "subtotal_cents": self.subtotal_cents,
        }
