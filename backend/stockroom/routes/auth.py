# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockroom/routes/auth.py
"""
Authentication API routes

- POST /api/auth/signup: self-registration; account waits for manager approval
- POST /api/auth/login: email + password -> bearer token (active accounts only)
- POST /api/auth/logout: revoke the presented token
- GET  /api/auth/me: current user, role and resolved capability map
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import permission_service
from ..services.auth_service import PasswordValidationError, SignUpError, AccountNotActiveError
from ..decorators import require_auth
from ..permissions import list_permission_definitions


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/signup")
def signup_route():
    data = request.get_json(silent=True) or {}
    email = data.get("email")
    password = data.get("password")
    full_name = data.get("full_name")

    if not email or not password:
        return jsonify({"error": "email and password required"}), 400
    if not isinstance(email, str) or not isinstance(password, str):
        return jsonify({"error": "email and password must be strings"}), 400

    try:
        user = auth_service.sign_up(
            email,
            password,
            full_name,
            allowed_domain=current_app.config.get("ALLOWED_EMAIL_DOMAIN"),
        )
    except (PasswordValidationError, SignUpError) as e:
        return jsonify({"error": str(e)}), 400

    permission_service.log_security_event(
        user_id=user.id,
        event_type="USER_SIGNED_UP",
        success=True,
        resource=request.path,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )

    return jsonify({
        "user": user.to_dict(),
        "message": "Account created. A manager must approve it before you can log in.",
    }), 201


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    Pending and inactive accounts get 403 with their status.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        try:
            user = auth_service.authenticate(email, password)
        except AccountNotActiveError as e:
            permission_service.log_security_event(
                user_id=None,
                event_type="LOGIN_BLOCKED",
                success=False,
                resource=request.path,
                reason=f"{email}: {e}",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": str(e), "status": e.status}), 403

        if not user:
            permission_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=request.path,
                reason=f"Invalid credentials for {email}",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )
        context = session_service.build_context(user, session)

        return jsonify({
            "user": user.to_dict(),
            "permissions": context.capabilities(),
            "token": token,
            "session": session.to_dict(),
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    token = request.headers.get("Authorization").split(" ", 1)[1]
    session_service.revoke_session(token, reason="User logout")
    return jsonify({"ok": True}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    context = g.session_context
    return jsonify({
        "user": context.user.to_dict(),
        "role": context.role,
        "permissions": context.capabilities(),
        "granted": sorted(context.granted),
    }), 200


@auth_bp.get("/permissions")
@require_auth
def permission_definitions_route():
    """Catalog of permission codes with display names, for the permissions dialog."""
    return jsonify({"items": list_permission_definitions()}), 200
