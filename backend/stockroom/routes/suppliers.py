# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

"""
Supplier Routes

SECURITY: All routes require authentication.
- Reads are open to every active user
- Create / update / delete require can_add / can_edit / can_delete_suppliers
"""

from flask import Blueprint, request, jsonify

from ..decorators import require_auth, require_permission
from ..models import Supplier
from ..services import supplier_service
from ..cnpj import format_cnpj, validate_cnpj
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_supplier,
    ValidationError,
    ConflictError,
    NotFoundError,
)
from .common import page_args


SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "cnpj",
        "contact_name",
        "phone",
        "email",
        "address",
        "delivery_lead_time_days",
        "notes",
    },
    required_on_create={"name"},
)

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
def list_suppliers_route():
    """
    List suppliers ordered by name.

    Query parameters:
    - search: name, contact name or CNPJ substring
    - limit: Maximum results (default: 100, max 500)
    - offset: Pagination offset (default: 0)
    """
    limit, offset = page_args()
    suppliers = supplier_service.list_suppliers(
        search=request.args.get("search"),
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [s.to_dict() for s in suppliers],
        "count": len(suppliers),
        "limit": limit,
        "offset": offset,
    })


@suppliers_bp.get("/cnpj/check")
@require_auth
def check_cnpj_route():
    """Live form feedback: formatted value and validity for ?value=."""
    raw = request.args.get("value", "")
    return jsonify({"formatted": format_cnpj(raw), "valid": validate_cnpj(raw)})


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
def get_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.get_supplier(supplier_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(supplier.to_dict())


@suppliers_bp.post("")
@require_auth
@require_permission("can_add_suppliers")
def create_supplier_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
        enforce_rules_supplier(patch)
        supplier = supplier_service.create_supplier(patch=patch)
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(supplier.to_dict()), 201


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_permission("can_edit_suppliers")
def update_supplier_route(supplier_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
        enforce_rules_supplier(patch)
        supplier = supplier_service.update_supplier(supplier_id=supplier_id, patch=patch)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(supplier.to_dict())


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_permission("can_delete_suppliers")
def delete_supplier_route(supplier_id: int):
    try:
        supplier_service.delete_supplier(supplier_id=supplier_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"ok": True})
