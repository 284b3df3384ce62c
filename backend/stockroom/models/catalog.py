from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z, to_iso_date


class Supplier(db.Model):
    """
    Supplier registry entry.

    CNPJ is optional but, when present, is validated and stored formatted
    (NN.NNN.NNN/NNNN-NN) so lookups and uniqueness are format-independent.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.UniqueConstraint("cnpj", name="uq_suppliers_cnpj"),
        db.Index("ix_suppliers_name", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    cnpj = db.Column(db.String(18), nullable=True)

    # Contact information
    contact_name = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    address = db.Column(db.Text, nullable=True)

    # Typical days between ordering and delivery
    delivery_lead_time_days = db.Column(db.Integer, nullable=True)

    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "cnpj": self.cnpj,
            "contact_name": self.contact_name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "delivery_lead_time_days": self.delivery_lead_time_days,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Product master data.

    STOCK:
    - quantity_in_stock is the current on-hand quantity
    - It only changes through StockMovement rows (see stock_service), so it
      always equals the quantity_after of the product's latest movement
    - threshold is the minimum stock; quantity_in_stock < threshold is "low stock"

    Money is stored in cents (frontend may only format for display).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_category_name", "category", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(128), nullable=False, index=True)
    unit = db.Column(db.String(32), nullable=False, default="un")

    quantity_in_stock = db.Column(db.Integer, nullable=False, default=0)
    threshold = db.Column(db.Integer, nullable=False, default=0)

    unit_price_cents = db.Column(db.Integer, nullable=False, default=0)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    vendor_name = db.Column(db.String(255), nullable=True)

    expiration_date = db.Column(db.Date, nullable=True)
    photo_url = db.Column(db.String(512), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    supplier = db.relationship("Supplier", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_low_stock(self) -> bool:
        return self.quantity_in_stock < self.threshold

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} qty={self.quantity_in_stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "unit": self.unit,
            "quantity_in_stock": self.quantity_in_stock,
            "threshold": self.threshold,
            "unit_price_cents": self.unit_price_cents,
            "supplier_id": self.supplier_id,
            "vendor_name": self.vendor_name,
            "expiration_date": to_iso_date(self.expiration_date),
            "photo_url": self.photo_url,
            "is_low_stock": self.is_low_stock,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
