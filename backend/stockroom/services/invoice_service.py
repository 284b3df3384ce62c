# Overview: Service-layer operations for invoices; encapsulates business logic and database work.

"""
Invoice Service

ATOMICITY: create_invoice writes the invoice header, every line, any
inline-created products and the stock deductions in ONE transaction.
Any failure rolls the whole sequence back, so an invoice never exists
without its lines or with only part of its stock deducted.

LINES: each item either references an existing product (product_id) or
carries a new_product block, which creates the product first. The line
keeps an item_name snapshot so it stays readable if the product is
renamed or deleted.

STOCK: when deduct_stock is true (default) each line records a "sale"
movement for its quantity (clamped at zero, see stock_service).
Deleting an invoice does not give stock back.
"""

from __future__ import annotations

import time

from ..extensions import db
from ..models import Invoice, InvoiceItem, Product, Supplier
from ..validation import (
    ModelValidationPolicy,
    NotFoundError,
    ValidationError,
    enforce_rules_product,
    parse_cents,
    parse_line_quantity,
    validate_payload,
)
from .stock_service import apply_movement, lock_product, MOVEMENT_SALE, MOVEMENT_ADJUSTMENT
from .products_service import OPENING_STOCK_REASON


INLINE_PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "category", "unit", "unit_price_cents", "threshold", "quantity_in_stock", "vendor_name"},
    required_on_create={"name", "category"},
)

INVOICE_HEADER_POLICY = ModelValidationPolicy(
    writable_fields={"customer_name", "phone_number", "supplier_id", "shipping_cents", "tax_cents", "photo_url"},
    required_on_create={"customer_name"},
)


def next_invoice_number() -> str:
    """INV-<epoch millis>, bumped past any number already taken."""
    stamp = int(time.time() * 1000)
    while db.session.query(Invoice.id).filter_by(invoice_number=f"INV-{stamp}").first():
        stamp += 1
    return f"INV-{stamp}"


def _validate_header(payload: dict, partial: bool) -> dict:
    header = {k: payload[k] for k in INVOICE_HEADER_POLICY.writable_fields if k in payload}
    patch = validate_payload(model=Invoice, payload=header, policy=INVOICE_HEADER_POLICY, partial=partial)

    for field in ("shipping_cents", "tax_cents"):
        if field in patch:
            patch[field] = parse_cents(patch[field], field, default=0)

    if patch.get("supplier_id") is not None and not db.session.get(Supplier, patch["supplier_id"]):
        raise ValidationError("supplier_id does not reference an existing supplier")

    return patch


def _create_inline_product(ctx, block, index: int) -> Product:
    if not isinstance(block, dict):
        raise ValidationError(f"items[{index}].new_product must be an object")
    try:
        patch = validate_payload(model=Product, payload=block, policy=INLINE_PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        raise ValidationError(f"items[{index}].new_product: {e}")

    opening = patch.pop("quantity_in_stock", None) or 0
    product = Product(
        quantity_in_stock=0,
        unit=patch.pop("unit", None) or "un",
        threshold=patch.pop("threshold", None) or 0,
        unit_price_cents=patch.pop("unit_price_cents", None) or 0,
        **patch,
    )
    db.session.add(product)
    db.session.flush()

    if opening:
        apply_movement(product, opening, MOVEMENT_ADJUSTMENT, user_id=ctx.user_id, reason=OPENING_STOCK_REASON)

    return product


def create_invoice(ctx, payload: dict) -> Invoice:
    """
    Create an invoice with its lines (and stock deductions) atomically.

    payload:
        customer_name, phone_number, supplier_id, shipping_cents, tax_cents,
        photo_url, deduct_stock (default true),
        items: [{product_id | new_product, quantity, price_per_item_cents}]

    price_per_item_cents defaults to the product's unit price.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    header = _validate_header(payload, partial=False)

    deduct_stock = payload.get("deduct_stock", True)
    if not isinstance(deduct_stock, bool):
        raise ValidationError("deduct_stock must be a boolean")

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    try:
        fields = {"shipping_cents": 0, "tax_cents": 0, **header}
        invoice = Invoice(
            invoice_number=next_invoice_number(),
            deduct_stock=deduct_stock,
            created_by_user_id=ctx.user_id,
            **fields,
        )
        db.session.add(invoice)
        db.session.flush()

        for index, raw in enumerate(items):
            if not isinstance(raw, dict):
                raise ValidationError(f"items[{index}] must be an object")

            quantity = parse_line_quantity(raw.get("quantity"), f"items[{index}].quantity")

            if raw.get("new_product") is not None:
                product = _create_inline_product(ctx, raw["new_product"], index)
            elif raw.get("product_id") is not None:
                product_id = raw["product_id"]
                if not isinstance(product_id, int) or isinstance(product_id, bool):
                    raise ValidationError(f"items[{index}].product_id must be an integer")
                try:
                    product = lock_product(product_id)
                except NotFoundError:
                    raise ValidationError(f"items[{index}].product_id {product_id} not found")
            else:
                raise ValidationError(f"items[{index}] needs product_id or new_product")

            price = parse_cents(
                raw.get("price_per_item_cents"),
                f"items[{index}].price_per_item_cents",
                default=product.unit_price_cents or 0,
            )

            line = InvoiceItem(
                product_id=product.id,
                item_name=product.name,
                quantity=quantity,
                price_per_item_cents=price,
                subtotal_cents=quantity * price,
            )
            invoice.items.append(line)

            if deduct_stock:
                apply_movement(
                    product,
                    -quantity,
                    MOVEMENT_SALE,
                    user_id=ctx.user_id,
                    reason=f"Invoice {invoice.invoice_number}",
                    invoice_id=invoice.id,
                )

        invoice.recompute_totals()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return invoice


def list_invoices(*, search: str | None = None, limit: int = 100, offset: int = 0) -> list[Invoice]:
    """Newest first. search matches invoice number or customer name."""
    query = db.session.query(Invoice)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(db.or_(Invoice.invoice_number.ilike(pattern), Invoice.customer_name.ilike(pattern)))
    return (
        query.order_by(Invoice.created_at.desc(), Invoice.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )


def get_invoice(invoice_id: int) -> Invoice:
    invoice = db.session.get(Invoice, invoice_id)
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def update_invoice(*, invoice_id: int, payload: dict) -> Invoice:
    """Header-only update; lines and stock are immutable once created."""
    invoice = get_invoice(invoice_id)

    unknown = sorted(k for k in (payload or {}) if k not in INVOICE_HEADER_POLICY.writable_fields)
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}")

    patch = _validate_header(payload or {}, partial=True)
    for k, v in patch.items():
        setattr(invoice, k, v)

    invoice.recompute_totals()
    db.session.commit()
    return invoice


def set_invoice_photo(invoice_id: int, photo_url: str) -> Invoice:
    invoice = get_invoice(invoice_id)
    invoice.photo_url = photo_url
    db.session.commit()
    return invoice


def delete_invoice(*, invoice_id: int) -> None:
    invoice = get_invoice(invoice_id)
    db.session.delete(invoice)
    db.session.commit()
