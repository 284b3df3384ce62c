# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier Service

DESIGN:
- CNPJ is optional. When given it must pass check-digit validation and is
  stored formatted, so "11222333000181" and "11.222.333/0001-81" collide.
- A supplier referenced by purchase orders cannot be deleted; the orders
  keep a supplier_name snapshot but reports group by supplier_id.
"""

from sqlalchemy import or_

from ..extensions import db
from ..models import Supplier, PurchaseOrder, Invoice
from ..validation import ConflictError, NotFoundError, ValidationError
from ..cnpj import format_cnpj, validate_cnpj

SUPPLIER_MUTABLE_FIELDS = {
    "name",
    "cnpj",
    "contact_name",
    "phone",
    "email",
    "address",
    "delivery_lead_time_days",
    "notes",
}


def _normalize_cnpj(patch: dict, supplier_id: int | None = None) -> None:
    if "cnpj" not in patch or patch["cnpj"] is None:
        return

    raw = patch["cnpj"]
    if not validate_cnpj(raw):
        raise ValidationError("cnpj is not a valid CNPJ")

    formatted = format_cnpj(raw)
    query = db.session.query(Supplier).filter(Supplier.cnpj == formatted)
    if supplier_id is not None:
        query = query.filter(Supplier.id != supplier_id)
    if query.first():
        raise ConflictError(f"A supplier with CNPJ {formatted} already exists")

    patch["cnpj"] = formatted


def list_suppliers(*, search: str | None = None, limit: int = 100, offset: int = 0) -> list[Supplier]:
    """Suppliers ordered by name. search matches name, contact name or CNPJ."""
    query = db.session.query(Supplier)

    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Supplier.name.ilike(pattern),
            Supplier.contact_name.ilike(pattern),
            Supplier.cnpj.ilike(pattern),
        ))

    return query.order_by(Supplier.name.asc(), Supplier.id.asc()).offset(offset).limit(limit).all()


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if not supplier:
        raise NotFoundError(f"Supplier {supplier_id} not found")
    return supplier


def create_supplier(*, patch: dict) -> Supplier:
    patch = dict(patch)
    _normalize_cnpj(patch)

    supplier = Supplier()
    for k, v in patch.items():
        if k in SUPPLIER_MUTABLE_FIELDS:
            setattr(supplier, k, v)

    db.session.add(supplier)
    db.session.commit()
    return supplier


def update_supplier(*, supplier_id: int, patch: dict) -> Supplier:
    supplier = get_supplier(supplier_id)

    patch = dict(patch)
    _normalize_cnpj(patch, supplier_id=supplier_id)

    for k, v in patch.items():
        if k in SUPPLIER_MUTABLE_FIELDS:
            setattr(supplier, k, v)

    db.session.commit()
    return supplier


def delete_supplier(*, supplier_id: int) -> None:
    """
    Raises:
        NotFoundError: If supplier not found
        ConflictError: If purchase orders reference the supplier
    """
    supplier = get_supplier(supplier_id)

    order_count = db.session.query(PurchaseOrder).filter_by(supplier_id=supplier_id).count()
    if order_count:
        raise ConflictError(
            f"Supplier has {order_count} purchase order(s) and cannot be deleted"
        )

    # Products keep their free-text vendor_name
    for product in supplier.products:
        product.supplier_id = None
    db.session.query(Invoice).filter_by(supplier_id=supplier_id).update(
        {Invoice.supplier_id: None}, synchronize_session=False
    )

    db.session.delete(supplier)
    db.session.commit()
