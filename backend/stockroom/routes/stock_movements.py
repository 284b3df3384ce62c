# Overview: Flask API routes for stock movements; parses input and returns JSON responses.

"""
Stock Movement Routes

SECURITY: All routes require authentication.
- Listing is open to every active user
- Recording a manual movement requires role manager or supervisor
- Export requires can_export_data
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_permission, require_role
from ..permissions import STOCK_MOVEMENT_ROLES
from ..services import stock_service
from ..services.export_service import MOVEMENT_COLUMNS, movement_rows
from ..validation import ValidationError, NotFoundError
from .common import page_args, export_response


stock_movements_bp = Blueprint("stock_movements", __name__, url_prefix="/api/stock-movements")


def _filters():
    movement_type = request.args.get("movement_type")
    if movement_type and movement_type not in stock_service.MOVEMENT_TYPES:
        raise ValidationError(f"movement_type must be one of: {', '.join(stock_service.MOVEMENT_TYPES)}")
    return request.args.get("product_id", type=int), movement_type


@stock_movements_bp.get("")
@require_auth
def list_movements_route():
    """Newest first. Query: product_id, movement_type, limit, offset."""
    limit, offset = page_args()
    try:
        product_id, movement_type = _filters()
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    movements = stock_service.list_movements(
        product_id=product_id,
        movement_type=movement_type,
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [m.to_dict() for m in movements],
        "count": len(movements),
        "limit": limit,
        "offset": offset,
    })


@stock_movements_bp.get("/export")
@require_auth
@require_permission("can_export_data")
def export_movements_route():
    try:
        product_id, movement_type = _filters()
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    movements = stock_service.list_movements(product_id=product_id, movement_type=movement_type, limit=10_000)
    return export_response("stock-movements", MOVEMENT_COLUMNS, movement_rows(movements), "Stock Movements")


@stock_movements_bp.post("")
@require_auth
@require_role(*STOCK_MOVEMENT_ROLES)
def record_movement_route():
    """
    Request body:
    {
        "product_id": 1,
        "movement_type": "waste",     // sale | purchase | adjustment | return | waste
        "quantity_change": -3,        // signed
        "reason": "Expired"
    }
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    product_id = payload.get("product_id")
    if not isinstance(product_id, int) or isinstance(product_id, bool):
        return jsonify({"error": "product_id must be an integer"}), 400

    reason = payload.get("reason")
    if reason is not None and not isinstance(reason, str):
        return jsonify({"error": "reason must be a string"}), 400

    try:
        movement = stock_service.record_movement(
            g.session_context,
            product_id,
            payload.get("quantity_change"),
            payload.get("movement_type"),
            reason,
        )
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "movement": movement.to_dict(),
        "product": movement.product.to_dict(),
    }), 201
