# Overview: Flask API routes for the signed-in user's own profile.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..services import user_service
from ..services.storage_service import BUCKET_AVATARS
from ..validation import ValidationError
from .common import upload_from_request, StorageError


profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")


@profile_bp.get("")
@require_auth
def get_profile_route():
    return jsonify(g.current_user.to_dict())


@profile_bp.put("")
@require_auth
def update_profile_route():
    payload = request.get_json(silent=True) or {}
    try:
        user = user_service.update_profile(g.current_user, payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(user.to_dict())


@profile_bp.post("/avatar")
@require_auth
def upload_avatar_route():
    """Multipart upload (field "file"), stored as avatars/<user_id>/<random>.<ext>."""
    user = g.current_user
    try:
        url = upload_from_request(BUCKET_AVATARS, user.id)
    except StorageError as e:
        return jsonify({"error": str(e)}), 400

    user = user_service.set_avatar(user, url)
    return jsonify(user.to_dict())
