from __future__ import annotations

from ..extensions import db
from stockroom.time_utils import to_utc_z


class StockMovement(db.Model):
    """
    Stock ledger row.

    INVARIANTS:
    - quantity_after == quantity_before + quantity_change
    - quantity_after >= 0 (deductions are clamped, see stock_service.apply_stock_delta)
    - The latest row per product matches Product.quantity_in_stock

    IMMUTABLE: Corrections are new "adjustment" rows, never edits.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        db.CheckConstraint("quantity_after >= 0", name="ck_stock_movements_after_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    # sale | purchase | adjustment | return | waste
    movement_type = db.Column(db.String(16), nullable=False, index=True)

    quantity_before = db.Column(db.Integer, nullable=False)
    quantity_change = db.Column(db.Integer, nullable=False)
    quantity_after = db.Column(db.Integer, nullable=False)

    reason = db.Column(db.String(255), nullable=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    # Provenance (at most one set)
    invoice_id = db.Column(db.Integer, db.ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True, index=True)
    purchase_order_id = db.Column(
        db.Integer, db.ForeignKey("purchase_orders.id", ondelete="SET NULL"), nullable=True, index=True
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    product = db.relationship(
        "Product", backref=db.backref("stock_movements", lazy=True, cascade="all, delete-orphan")
    )
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "movement_type": self.movement_type,
            "quantity_before": self.quantity_before,
            "quantity_change": self.quantity_change,
            "quantity_after": self.quantity_after,
            "reason": self.reason,
            "user_id": self.user_id,
            "invoice_id": self.invoice_id,
            "purchase_order_id": self.purchase_order_id,
            "created_at": to_utc_z(self.created_at),
        }


class LowStockAlert(db.Model):
    """
    Raised when a product's stock drops below its threshold.

    At most one unacknowledged alert exists per product; acknowledging it
    lets the next crossing raise a fresh one.
    """
    __tablename__ = "low_stock_alerts"
    __table_args__ = (
        db.Index("ix_low_stock_alerts_open", "acknowledged", "sent_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity_at_alert = db.Column(db.Integer, nullable=False)
    threshold = db.Column(db.Integer, nullable=False)

    # critical (out of stock) | warning
    severity = db.Column(db.String(16), nullable=False, default="warning")

    sent_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    acknowledged = db.Column(db.Boolean, nullable=False, default=False)
    acknowledged_at = db.Column(db.DateTime(timezone=True), nullable=True)
    acknowledged_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    product = db.relationship(
        "Product", backref=db.backref("low_stock_alerts", lazy=True, cascade="all, delete-orphan")
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "quantity_at_alert": self.quantity_at_alert,
            "threshold": self.threshold,
            "severity": self.severity,
            "sent_at": to_utc_z(self.sent_at),
            "acknowledged": self.acknowledged,
            "acknowledged_at": to_utc_z(self.acknowledged_at) if self.acknowledged_at else None,
            "acknowledged_by_user_id": self.acknowledged_by_user_id,
        }


class FraudAlert(db.Model):
    """
    Suspicious-activity flag raised for manager review.

    Rows are filed by operators or monitoring jobs (`flask alerts fraud-report`);
    the notification panel lists unresolved ones and resolves them.
    """
    __tablename__ = "fraud_alerts"
    __table_args__ = (
        db.Index("ix_fraud_alerts_open", "resolved", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # low | medium | high
    severity = db.Column(db.String(16), nullable=False, default="medium")
    description = db.Column(db.Text, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    resolved = db.Column(db.Boolean, nullable=False, default=False)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    resolved_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "severity": self.severity,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "resolved": self.resolved,
            "resolved_at": to_utc_z(self.resolved_at) if self.resolved_at else None,
            "resolved_by_user_id": self.resolved_by_user_id,
        }
