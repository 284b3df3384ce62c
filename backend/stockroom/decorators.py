# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, permission_service
from .services.permission_service import PermissionDeniedError


def _is_authenticated() -> bool:
    return hasattr(g, 'session_context')


def require_auth(f):
    """
    Require authentication and establish the session context.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.session_context: The SessionContext (user, role, grants)

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired or revoked token
    - User account pending or inactive
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific permission (role default or explicit grant).

    Denials are written to security_events.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(
                    g.session_context,
                    permission_code,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_role(*roles: str):
    """
    Require the user's role to be one of `roles`.

    Used where the gate is the role itself rather than a permission
    (user administration, manual stock movements).
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            context = g.session_context
            if not context.has_role(*roles):
                permission_service.log_security_event(
                    user_id=context.user.id,
                    event_type="ROLE_DENIED",
                    success=False,
                    resource=request.path,
                    action=request.method,
                    reason=f"Requires role: {', '.join(roles)}",
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
