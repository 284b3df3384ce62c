# Overview: Flask API routes for user administration (manager only); parses input and returns JSON responses.

"""
User Administration Routes

SECURITY: manager role required for every route.
- List users with role, status and explicit grants
- Approve / deactivate / change role
- Replace, grant or revoke per-user permissions
"""

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth, require_role
from ..permissions import ROLE_MANAGER
from ..services import user_service, permission_service
from ..validation import ValidationError, ConflictError, NotFoundError


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_role(ROLE_MANAGER)
def list_users_route():
    """Query: status (active | pending | inactive)."""
    users = user_service.list_users(status=request.args.get("status"))
    return jsonify({
        "items": [user_service.user_summary(u) for u in users],
        "count": len(users),
    })


@users_bp.get("/<int:user_id>")
@require_auth
@require_role(ROLE_MANAGER)
def get_user_route(user_id: int):
    try:
        user = user_service.get_user(user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(user_service.user_summary(user))


@users_bp.patch("/<int:user_id>")
@require_auth
@require_role(ROLE_MANAGER)
def update_user_route(user_id: int):
    """
    Request body: {"role": "supervisor"} and/or {"status": "active"}.

    Approving a pending user without a role makes them staff.
    """
    payload = request.get_json(silent=True) or {}

    try:
        user = user_service.update_user(g.session_context, user_id=user_id, payload=payload)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(user_service.user_summary(user))


@users_bp.get("/<int:user_id>/permissions")
@require_auth
@require_role(ROLE_MANAGER)
def list_user_permissions_route(user_id: int):
    try:
        user = user_service.get_user(user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    grants = permission_service.list_user_grants(user.id)
    return jsonify({"items": [grant.to_dict() for grant in grants]})


@users_bp.put("/<int:user_id>/permissions")
@require_auth
@require_role(ROLE_MANAGER)
def set_user_permissions_route(user_id: int):
    """Replace the user's grants: {"permissions": ["can_add_products", ...]}."""
    payload = request.get_json(silent=True) or {}
    codes = payload.get("permissions")
    if not isinstance(codes, list) or not all(isinstance(c, str) for c in codes):
        return jsonify({"error": "permissions must be a list of permission codes"}), 400

    try:
        granted = permission_service.set_user_grants(
            user_id=user_id,
            permission_codes=codes,
            granted_by_user_id=g.current_user.id,
        )
    except LookupError as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"permissions": sorted(granted)})


@users_bp.post("/<int:user_id>/permissions/<permission_code>")
@require_auth
@require_role(ROLE_MANAGER)
def grant_permission_route(user_id: int, permission_code: str):
    try:
        grant = permission_service.grant_permission(
            user_id=user_id,
            permission_code=permission_code,
            granted_by_user_id=g.current_user.id,
        )
    except LookupError as e:
        return jsonify({"error": str(e)}), 404
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify(grant.to_dict()), 201


@users_bp.delete("/<int:user_id>/permissions/<permission_code>")
@require_auth
@require_role(ROLE_MANAGER)
def revoke_permission_route(user_id: int, permission_code: str):
    revoked = permission_service.revoke_permission(
        user_id=user_id,
        permission_code=permission_code,
        revoked_by_user_id=g.current_user.id,
    )
    if not revoked:
        return jsonify({"error": "Permission not granted"}), 404
    return jsonify({"ok": True})
