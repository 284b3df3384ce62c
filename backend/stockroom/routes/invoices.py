# Overview: Flask API routes for invoice operations; parses input and returns JSON responses.

"""
Invoice Routes

SECURITY: All routes require authentication.
- Reads are open to every active user
- Create / update / delete require can_add / can_edit / can_delete_invoices
- Export requires can_export_data
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..services import invoice_service
from ..services.export_service import INVOICE_COLUMNS, invoice_rows
from ..services.storage_service import BUCKET_INVOICE_PHOTOS
from ..validation import ValidationError, NotFoundError
from .common import page_args, export_response, upload_from_request, StorageError


invoices_bp = Blueprint("invoices", __name__, url_prefix="/api/invoices")


@invoices_bp.get("")
@require_auth
def list_invoices_route():
    """Newest first. Query: search, limit, offset."""
    limit, offset = page_args()
    invoices = invoice_service.list_invoices(
        search=request.args.get("search"),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [inv.to_dict() for inv in invoices],
        "count": len(invoices),
        "limit": limit,
        "offset": offset,
    })


@invoices_bp.get("/export")
@require_auth
@require_permission("can_export_data")
def export_invoices_route():
    invoices = invoice_service.list_invoices(search=request.args.get("search"), limit=10_000)
    return export_response("invoices", INVOICE_COLUMNS, invoice_rows(invoices), "Invoices")


@invoices_bp.get("/<int:invoice_id>")
@require_auth
def get_invoice_route(invoice_id: int):
    try:
        invoice = invoice_service.get_invoice(invoice_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(invoice.to_dict(include_items=True))


@invoices_bp.post("")
@require_auth
@require_permission("can_add_invoices")
def create_invoice_route():
    """
    Create an invoice with its items in one transaction.

    Request body:
    {
        "customer_name": "Mesa 4",            // required
        "phone_number": "+55 11 99999-0000",
        "shipping_cents": 0,
        "tax_cents": 0,
        "deduct_stock": true,
        "items": [
            {"product_id": 1, "quantity": 2, "price_per_item_cents": 1500},
            {"new_product": {"name": "Rúcula", "category": "Restaurante"}, "quantity": 1}
        ]
    }
    """
    payload = request.get_json(silent=True) or {}

    try:
        invoice = invoice_service.create_invoice(g.session_context, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create invoice")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(invoice.to_dict(include_items=True)), 201


@invoices_bp.put("/<int:invoice_id>")
@require_auth
@require_permission("can_edit_invoices")
def update_invoice_route(invoice_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        invoice = invoice_service.update_invoice(invoice_id=invoice_id, payload=payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(invoice.to_dict(include_items=True))


@invoices_bp.post("/<int:invoice_id>/photo")
@require_auth
@require_permission("can_edit_invoices")
def upload_invoice_photo_route(invoice_id: int):
    try:
        invoice_service.get_invoice(invoice_id)
        url = upload_from_request(BUCKET_INVOICE_PHOTOS, invoice_id)
        invoice = invoice_service.set_invoice_photo(invoice_id, url)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except StorageError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(invoice.to_dict())


@invoices_bp.delete("/<int:invoice_id>")
@require_auth
@require_permission("can_delete_invoices")
def delete_invoice_route(invoice_id: int):
    try:
        invoice_service.delete_invoice(invoice_id=invoice_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"ok": True})
