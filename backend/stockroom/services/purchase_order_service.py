# Overview: Service-layer operations for purchase orders; encapsulates business logic and database work.

"""
Purchase Order Service

STATUS MACHINE:
    pending    -> in_transit | delivered | cancelled
    in_transit -> delivered | cancelled
    delivered, cancelled: terminal

RECEIVING: the transition to "delivered" records one "purchase" stock
movement per line and stamps delivered_at, in the same transaction as
the status change. A delivered order cannot be deleted because its stock
has already been received.
"""

from __future__ import annotations

import time

from ..extensions import db
from ..models import PurchaseOrder, PurchaseOrderItem, Supplier
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    coerce_date,
    parse_cents,
    parse_line_quantity,
)
from .stock_service import apply_movement, lock_product, MOVEMENT_PURCHASE
from stockroom.time_utils import utcnow


STATUS_PENDING = "pending"
STATUS_IN_TRANSIT = "in_transit"
STATUS_DELIVERED = "delivered"
STATUS_CANCELLED = "cancelled"

STATUSES = (STATUS_PENDING, STATUS_IN_TRANSIT, STATUS_DELIVERED, STATUS_CANCELLED)

ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_IN_TRANSIT, STATUS_DELIVERED, STATUS_CANCELLED},
    STATUS_IN_TRANSIT: {STATUS_DELIVERED, STATUS_CANCELLED},
    STATUS_DELIVERED: set(),
    STATUS_CANCELLED: set(),
}

HEADER_FIELDS = {"expected_delivery", "notes", "delivery_status"}


def next_order_number() -> str:
    """PO-<epoch millis>, bumped past any number already taken."""
    stamp = int(time.time() * 1000)
    while db.session.query(PurchaseOrder.id).filter_by(order_number=f"PO-{stamp}").first():
        stamp += 1
    return f"PO-{stamp}"


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def _notes(value) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("notes must be a string")
    return value.strip() or None


def create_purchase_order(ctx, payload: dict) -> PurchaseOrder:
    """
    Create a pending purchase order with its lines in one transaction.

    payload:
        supplier_id (required), order_date (default today), expected_delivery,
        notes, items: [{product_id, quantity, unit_price_cents}]

    unit_price_cents defaults to the product's unit price.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    supplier_id = payload.get("supplier_id")
    if supplier_id is None:
        raise ValidationError("supplier_id is required")
    supplier = db.session.get(Supplier, supplier_id) if isinstance(supplier_id, int) else None
    if not supplier:
        raise ValidationError("supplier_id does not reference an existing supplier")

    order_date = coerce_date(payload.get("order_date"), "order_date") or utcnow().date()
    expected_delivery = coerce_date(payload.get("expected_delivery"), "expected_delivery")
    if expected_delivery is not None and expected_delivery < order_date:
        raise ValidationError("expected_delivery cannot be before order_date")

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    try:
        order = PurchaseOrder(
            order_number=next_order_number(),
            supplier_id=supplier.id,
            supplier_name=supplier.name,
            order_date=order_date,
            expected_delivery=expected_delivery,
            delivery_status=STATUS_PENDING,
            notes=_notes(payload.get("notes")),
            created_by_user_id=ctx.user_id,
        )
        db.session.add(order)

        for index, raw in enumerate(items):
            if not isinstance(raw, dict):
                raise ValidationError(f"items[{index}] must be an object")

            product_id = raw.get("product_id")
            if not isinstance(product_id, int) or isinstance(product_id, bool):
                raise ValidationError(f"items[{index}].product_id must be an integer")
            try:
                product = lock_product(product_id)
            except NotFoundError:
                raise ValidationError(f"items[{index}].product_id {product_id} not found")

            order.items.append(PurchaseOrderItem(
                product_id=product.id,
                quantity=parse_line_quantity(raw.get("quantity"), f"items[{index}].quantity"),
                unit_price_cents=parse_cents(
                    raw.get("unit_price_cents"),
                    f"items[{index}].unit_price_cents",
                    default=product.unit_price_cents or 0,
                ),
            ))

        order.total_cents = sum(item.line_total_cents for item in order.items)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return order


def list_purchase_orders(
    *,
    status: str | None = None,
    supplier_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[PurchaseOrder]:
    """Newest first."""
    query = db.session.query(PurchaseOrder)
    if status:
        query = query.filter(PurchaseOrder.delivery_status == status)
    if supplier_id is not None:
        query = query.filter(PurchaseOrder.supplier_id == supplier_id)
    return (
        query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_purchase_order(order_id: int) -> PurchaseOrder:
    order = db.session.get(PurchaseOrder, order_id)
    if not order:
        raise NotFoundError("Purchase order not found")
    return order


def _receive(ctx, order: PurchaseOrder) -> None:
    for item in order.items:
        product = lock_product(item.product_id)
        apply_movement(
            product,
            item.quantity,
            MOVEMENT_PURCHASE,
            user_id=ctx.user_id,
            reason=f"Purchase order {order.order_number}",
            purchase_order_id=order.id,
        )
    order.delivered_at = utcnow()


def update_purchase_order(ctx, *, order_id: int, payload: dict) -> PurchaseOrder:
    """
    Update header fields and/or delivery_status.

    Raises:
        ValidationError: unknown field, bad date or unknown status
        ConflictError: transition not allowed from the current status
    """
    order = get_purchase_order(order_id)
    payload = payload or {}

    unknown = sorted(k for k in payload if k not in HEADER_FIELDS)
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}")

    target = payload.get("delivery_status")
    if target is not None and target not in STATUSES:
        raise ValidationError(f"delivery_status must be one of: {', '.join(STATUSES)}")

    try:
        if "expected_delivery" in payload:
            expected = coerce_date(payload["expected_delivery"], "expected_delivery")
            if expected is not None and expected < order.order_date:
                raise ValidationError("expected_delivery cannot be before order_date")
            order.expected_delivery = expected
        if "notes" in payload:
            order.notes = _notes(payload["notes"])

        if target is not None and target != order.delivery_status:
            if not can_transition(order.delivery_status, target):
                raise ConflictError(
                    f"Cannot change status from {order.delivery_status} to {target}"
                )
            if target == STATUS_DELIVERED:
                _receive(ctx, order)
            order.delivery_status = target

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return order


def delete_purchase_order(*, order_id: int) -> None:
    order = get_purchase_order(order_id)
    if order.delivery_status == STATUS_DELIVERED:
        raise ConflictError("Delivered purchase orders cannot be deleted")
    db.session.delete(order)
    db.session.commit()
