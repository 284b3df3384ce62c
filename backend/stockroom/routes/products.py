# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/stockroom/routes/products.py
"""
Product management routes.

SECURITY: All routes require authentication.
- Reads are open to every active user
- Create / update / delete require can_add / can_edit / can_delete_products
- Export requires can_export_data
"""
from flask import Blueprint, request, g, current_app
from ..services import products_service
from ..services.export_service import PRODUCT_COLUMNS, product_rows
from ..services.storage_service import BUCKET_PRODUCT_PHOTOS
from ..models import Product
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from ..decorators import require_auth, require_permission
from .common import bool_arg, export_response, upload_from_request, StorageError

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "category",
        "unit",
        "quantity_in_stock",
        "threshold",
        "unit_price_cents",
        "supplier_id",
        "vendor_name",
        "expiration_date",
        "photo_url",
    },
    required_on_create={"name", "category"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
def list_products():
    """
    List products ordered by name.

    Query params:
    - search: name/category substring
    - category: exact category
    - low_stock_only: true to keep only quantity_in_stock < threshold
    - page / per_page: optional pagination (per_page max 100)
    """
    return products_service.list_products(
        search=request.args.get("search"),
        category=request.args.get("category"),
        low_stock_only=bool_arg("low_stock_only"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/categories")
@require_auth
def list_categories():
    return {"items": products_service.list_categories()}


@products_bp.get("/export")
@require_auth
@require_permission("can_export_data")
def export_products():
    products = products_service.query_products(
        search=request.args.get("search"),
        category=request.args.get("category"),
        low_stock_only=bool_arg("low_stock_only"),
    ).all()
    rows = product_rows(products)
    return export_response("products", PRODUCT_COLUMNS, rows, "Products")


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        return products_service.get_product(product_id).to_dict()
    except NotFoundError as e:
        return {"error": str(e)}, 404


@products_bp.post("")
@require_auth
@require_permission("can_add_products")
def create_product_route():
    """
    Create a new product.

    A non-zero quantity_in_stock is recorded as an opening stock movement.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(g.session_context, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("can_edit_products")
def update_product_route(product_id: int):
    """
    Update product master data.

    quantity_in_stock may be echoed back unchanged but not modified; stock
    changes go through /api/stock-movements.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
        updated = products_service.update_product(g.session_context, product_id=product_id, patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400

    return updated.to_dict(), 200


@products_bp.post("/<int:product_id>/photo")
@require_auth
@require_permission("can_edit_products")
def upload_product_photo_route(product_id: int):
    """Multipart upload (field "file"); stores the public URL on the product."""
    try:
        products_service.get_product(product_id)
        url = upload_from_request(BUCKET_PRODUCT_PHOTOS, product_id)
        product = products_service.set_product_photo(product_id, url)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except StorageError as e:
        return {"error": str(e)}, 400

    return product.to_dict(), 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("can_delete_products")
def delete_product_route(product_id: int):
    try:
        deleted = products_service.delete_product(product_id=product_id)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to delete product %s", product_id)
        return {"error": "Internal server error"}, 500

    if not deleted:
        return {"error": "Product not found"}, 404

    return {"ok": True}, 200
