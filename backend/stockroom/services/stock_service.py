# Overview: Service-layer operations for stock; the movement ledger, low-stock and fraud alerts.

"""
Stock Ledger Invariants (authoritative)

- Product.quantity_in_stock is only written through this module.
- Every change appends one StockMovement row with a before/change/after
  snapshot, in the same DB transaction as the product update.
- Quantities never go below zero. A deduction larger than the stock on
  hand is clamped: the recorded quantity_change is the effective change
  (-before), so quantity_after == quantity_before + quantity_change holds
  for every row and the latest row matches the product.
- Movements are immutable; corrections are new "adjustment" rows.

Sign conventions for manual movements:
- sale, waste: negative
- purchase, return: positive
- adjustment: either sign (never zero)

Low stock:
- quantity_in_stock < threshold
- A movement that leaves a product low while no open alert exists raises
  one LowStockAlert ("critical" at zero, otherwise "warning").

Fraud alerts are filed from outside the request cycle (CLI, monitoring)
and the API only lists and resolves them.
"""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Product, StockMovement, LowStockAlert, FraudAlert
from ..validation import ValidationError, NotFoundError, coerce_int, MAX_QUANTITY
from stockroom.time_utils import utcnow


MOVEMENT_SALE = "sale"
MOVEMENT_PURCHASE = "purchase"
MOVEMENT_ADJUSTMENT = "adjustment"
MOVEMENT_RETURN = "return"
MOVEMENT_WASTE = "waste"

MOVEMENT_TYPES = (
    MOVEMENT_SALE,
    MOVEMENT_PURCHASE,
    MOVEMENT_ADJUSTMENT,
    MOVEMENT_RETURN,
    MOVEMENT_WASTE,
)

_NEGATIVE_TYPES = {MOVEMENT_SALE, MOVEMENT_WASTE}
_POSITIVE_TYPES = {MOVEMENT_PURCHASE, MOVEMENT_RETURN}


def apply_stock_delta(before: int, change: int) -> tuple[int, int]:
    """
    Apply `change` to `before` under the floor-at-zero policy.

    Returns (effective_change, after) with after == before + effective_change
    and after >= 0.
    """
    after = before + change
    if after < 0:
        after = 0
    return after - before, after


def validate_movement(movement_type: str, quantity_change) -> int:
    """Check type and sign of a manual movement; returns the int change."""
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"movement_type must be one of: {', '.join(MOVEMENT_TYPES)}")

    if quantity_change is None:
        raise ValidationError("quantity_change is required")
    change = coerce_int(quantity_change, "quantity_change")

    if change == 0:
        raise ValidationError("quantity_change must be non-zero")
    if abs(change) > MAX_QUANTITY:
        raise ValidationError(f"quantity_change cannot exceed {MAX_QUANTITY}")
    if movement_type in _NEGATIVE_TYPES and change > 0:
        raise ValidationError(f"quantity_change must be negative for {movement_type}")
    if movement_type in _POSITIVE_TYPES and change < 0:
        raise ValidationError(f"quantity_change must be positive for {movement_type}")

    return change


def lock_product(product_id: int) -> Product:
    """
    Load a product for update.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    product = (
        db.session.query(Product)
        .filter_by(id=product_id)
        .with_for_update()
        .first()
    )
    if not product:
        raise NotFoundError("Product not found")
    return product


def _maybe_raise_alert(product: Product) -> LowStockAlert | None:
    if not product.is_low_stock:
        return None

    open_alert = db.session.query(LowStockAlert).filter_by(
        product_id=product.id,
        acknowledged=False,
    ).first()
    if open_alert:
        return None

    alert = LowStockAlert(
        product_id=product.id,
        quantity_at_alert=product.quantity_in_stock,
        threshold=product.threshold,
        severity="critical" if product.quantity_in_stock == 0 else "warning",
        sent_at=utcnow(),
        acknowledged=False,
    )
    db.session.add(alert)
    return alert


def apply_movement(
    product: Product,
    change: int,
    movement_type: str,
    *,
    user_id: int | None,
    reason: str | None = None,
    invoice_id: int | None = None,
    purchase_order_id: int | None = None,
) -> StockMovement:
    """
    Append a ledger row and update the product, WITHOUT committing.

    Callers composing a larger write (invoice creation, delivery receipt)
    commit once at the end so the whole sequence is atomic.
    """
    before = product.quantity_in_stock or 0
    effective, after = apply_stock_delta(before, change)

    movement = StockMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity_before=before,
        quantity_change=effective,
        quantity_after=after,
        reason=(reason or "").strip()[:255] or None,
        user_id=user_id,
        invoice_id=invoice_id,
        purchase_order_id=purchase_order_id,
        created_at=utcnow(),
    )
    db.session.add(movement)

    product.quantity_in_stock = after
    if effective < 0:
        _maybe_raise_alert(product)

    db.session.flush()
    return movement


def record_movement(ctx, product_id: int, quantity_change, movement_type: str, reason: str | None = None) -> StockMovement:
    """
    Record a manual stock movement for the acting user.

    The product is read (and locked) before anything is written, so a
    missing product aborts with NotFoundError and no ledger row.
    """
    change = validate_movement(movement_type, quantity_change)

    try:
        product = lock_product(product_id)
        movement = apply_movement(
            product,
            change,
            movement_type,
            user_id=ctx.user_id,
            reason=reason,
        )
        db.session.commit()
    except (NotFoundError, SQLAlchemyError):
        db.session.rollback()
        raise

    return movement


def list_movements(
    *,
    product_id: int | None = None,
    movement_type: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[StockMovement]:
    """Newest first."""
    query = db.session.query(StockMovement)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    if movement_type:
        query = query.filter(StockMovement.movement_type == movement_type)

    return (
        query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def list_open_alerts(limit: int = 10) -> list[LowStockAlert]:
    return (
        db.session.query(LowStockAlert)
        .filter_by(acknowledged=False)
        .order_by(LowStockAlert.sent_at.desc(), LowStockAlert.id.desc())
        .limit(limit)
        .all()
    )


def acknowledge_alert(ctx, alert_id: int) -> LowStockAlert:
    alert = db.session.get(LowStockAlert, alert_id)
    if not alert:
        raise NotFoundError("Alert not found")

    if not alert.acknowledged:
        alert.acknowledged = True
        alert.acknowledged_at = utcnow()
        alert.acknowledged_by_user_id = ctx.user_id
        db.session.commit()

    return alert


FRAUD_SEVERITIES = ("low", "medium", "high")


def record_fraud_alert(severity: str, description: str) -> FraudAlert:
    severity = (severity or "").strip().lower()
    if severity not in FRAUD_SEVERITIES:
        raise ValidationError(f"severity must be one of: {', '.join(FRAUD_SEVERITIES)}")

    description = (description or "").strip()
    if not description:
        raise ValidationError("description is required")

    alert = FraudAlert(severity=severity, description=description, created_at=utcnow())
    db.session.add(alert)
    db.session.commit()
    return alert


def list_open_fraud_alerts(limit: int = 5) -> list[FraudAlert]:
    return (
        db.session.query(FraudAlert)
        .filter_by(resolved=False)
        .order_by(FraudAlert.created_at.desc(), FraudAlert.id.desc())
        .limit(limit)
        .all()
    )


def resolve_fraud_alert(ctx, alert_id: int) -> FraudAlert:
    """Idempotent: resolving twice keeps the first resolver and timestamp."""
    alert = db.session.get(FraudAlert, alert_id)
    if not alert:
        raise NotFoundError("Fraud alert not found")

    if not alert.resolved:
        alert.resolved = True
        alert.resolved_at = utcnow()
        alert.resolved_by_user_id = ctx.user_id
        db.session.commit()

    return alert
