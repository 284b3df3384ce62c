# backend/stockroom/services/products_service.py
"""
Products Service

STOCK: quantity_in_stock is owned by the stock ledger.
- create_product records a non-zero initial quantity as an opening
  "adjustment" movement
- update_product refuses quantity changes; use stock movements instead
"""
from __future__ import annotations
from sqlalchemy import or_
from ..extensions import db
from ..models import Product, Supplier, InvoiceItem, PurchaseOrderItem
from ..validation import ConflictError, NotFoundError, ValidationError
from .stock_service import apply_movement, MOVEMENT_ADJUSTMENT

PRODUCT_MUTABLE_FIELDS = {
    "name",
    "category",
    "unit",
    "threshold",
    "unit_price_cents",
    "supplier_id",
    "vendor_name",
    "expiration_date",
    "photo_url",
}

OPENING_STOCK_REASON = "Opening stock"


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _resolve_supplier(patch: dict) -> None:
    supplier_id = patch.get("supplier_id")
    if supplier_id is None:
        return
    supplier = db.session.get(Supplier, supplier_id)
    if not supplier:
        raise ValidationError("supplier_id does not reference an existing supplier")
    if not patch.get("vendor_name"):
        patch["vendor_name"] = supplier.name


def query_products(*, search: str | None = None, category: str | None = None, low_stock_only: bool = False):
    """
    Filtered product query ordered by name.

    search matches name or category (case-insensitive substring).
    """
    query = db.session.query(Product)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Product.name.ilike(pattern), Product.category.ilike(pattern)))
    if category:
        query = query.filter(Product.category == category)
    if low_stock_only:
        query = query.filter(Product.quantity_in_stock < Product.threshold)

    return query.order_by(Product.name.asc(), Product.id.asc())


def list_products(
    *,
    search: str | None = None,
    category: str | None = None,
    low_stock_only: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """Product listing with optional filters and pagination."""
    base_query = query_products(search=search, category=category, low_stock_only=low_stock_only)

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if not product:
        raise NotFoundError("Product not found")
    return product


def create_product(ctx, *, patch: dict) -> Product:
    """
    Create product from a validated patch dict.

    The product row and its opening movement commit together.
    """
    patch = dict(patch)
    opening_quantity = patch.pop("quantity_in_stock", None) or 0
    _resolve_supplier(patch)

    product = Product(quantity_in_stock=0)
    apply_product_patch(product, patch)
    if product.unit is None:
        product.unit = "un"
    if product.threshold is None:
        product.threshold = 0
    if product.unit_price_cents is None:
        product.unit_price_cents = 0

    try:
        db.session.add(product)
        db.session.flush()

        if opening_quantity:
            apply_movement(
                product,
                opening_quantity,
                MOVEMENT_ADJUSTMENT,
                user_id=ctx.user_id,
                reason=OPENING_STOCK_REASON,
            )

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return product


def update_product(ctx, *, product_id: int, patch: dict) -> Product:
    """
    Update product master data.

    Raises ValidationError if the patch tries to change quantity_in_stock.
    """
    product = get_product(product_id)

    patch = dict(patch)
    if "quantity_in_stock" in patch:
        requested = patch.pop("quantity_in_stock")
        if requested != product.quantity_in_stock:
            raise ValidationError("quantity_in_stock can only be changed through stock movements")

    _resolve_supplier(patch)
    apply_product_patch(product, patch)
    db.session.commit()
    return product


def set_product_photo(product_id: int, photo_url: str) -> Product:
    product = get_product(product_id)
    product.photo_url = photo_url
    db.session.commit()
    return product


def delete_product(*, product_id: int) -> bool:
    """
    Delete a product with its stock movements and alerts.

    Invoice lines keep their item_name snapshot and lose the product link.
    Refused while any purchase order still lists the product.
    """
    product = db.session.get(Product, product_id)
    if not product:
        return False

    in_orders = db.session.query(PurchaseOrderItem).filter_by(product_id=product_id).count()
    if in_orders:
        raise ConflictError("Product is referenced by purchase orders and cannot be deleted")

    db.session.query(InvoiceItem).filter_by(product_id=product_id).update(
        {InvoiceItem.product_id: None}, synchronize_session=False
    )
    db.session.delete(product)
    db.session.commit()
    return True


def list_categories() -> list[str]:
    rows = db.session.query(Product.category).distinct().order_by(Product.category.asc()).all()
    return [row[0] for row in rows]
