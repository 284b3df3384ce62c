# Overview: Flask API routes for purchase order operations; parses input and returns JSON responses.

"""
Purchase Order Routes

SECURITY: All routes require authentication.
- Reads are open to every active user
- Create / update (including status) / delete require
  can_add / can_edit / can_delete_purchase_orders
- Export requires can_export_data
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_auth, require_permission
from ..services import purchase_order_service
from ..services.export_service import PURCHASE_ORDER_COLUMNS, purchase_order_rows
from ..validation import ValidationError, ConflictError, NotFoundError
from .common import page_args, export_response


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")


@purchase_orders_bp.get("")
@require_auth
def list_purchase_orders_route():
    """Newest first. Query: status, supplier_id, limit, offset."""
    limit, offset = page_args()
    orders = purchase_order_service.list_purchase_orders(
        status=request.args.get("status"),
        supplier_id=request.args.get("supplier_id", type=int),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [o.to_dict() for o in orders],
        "count": len(orders),
        "limit": limit,
        "offset": offset,
    })


@purchase_orders_bp.get("/export")
@require_auth
@require_permission("can_export_data")
def export_purchase_orders_route():
    orders = purchase_order_service.list_purchase_orders(status=request.args.get("status"), limit=10_000)
    return export_response(
        "purchase-orders", PURCHASE_ORDER_COLUMNS, purchase_order_rows(orders), "Purchase Orders"
    )


@purchase_orders_bp.get("/<int:order_id>")
@require_auth
def get_purchase_order_route(order_id: int):
    try:
        order = purchase_order_service.get_purchase_order(order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(order.to_dict(include_items=True))


@purchase_orders_bp.post("")
@require_auth
@require_permission("can_add_purchase_orders")
def create_purchase_order_route():
    """
    Request body:
    {
        "supplier_id": 1,                    // required
        "order_date": "2024-05-01",          // default today
        "expected_delivery": "2024-05-03",
        "notes": "...",
        "items": [{"product_id": 1, "quantity": 10, "unit_price_cents": 450}]
    }
    """
    payload = request.get_json(silent=True) or {}

    try:
        order = purchase_order_service.create_purchase_order(g.session_context, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to create purchase order")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify(order.to_dict(include_items=True)), 201


@purchase_orders_bp.put("/<int:order_id>")
@require_auth
@require_permission("can_edit_purchase_orders")
def update_purchase_order_route(order_id: int):
    """
    Update expected_delivery, notes and/or delivery_status.

    Moving to "delivered" receives every line into stock.
    """
    payload = request.get_json(silent=True) or {}

    try:
        order = purchase_order_service.update_purchase_order(
            g.session_context, order_id=order_id, payload=payload
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(order.to_dict(include_items=True))


@purchase_orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission("can_delete_purchase_orders")
def delete_purchase_order_route(order_id: int):
    try:
        purchase_order_service.delete_purchase_order(order_id=order_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"ok": True})
