# Overview: Service-layer operations for permission; grants, checks and security event logging.

"""
Permission Checking and Security Event Logging

WHY: Enforce role-based access control and create audit trail.
Denied checks and user-administration actions are logged for review.

DESIGN PRINCIPLES:
- Fail closed: unknown permission codes are never allowed
- Role defaults come from code (permissions.roles), grants from the DB
- Log denials only: allowed checks are not logged
- Grants are keyed by (user, permission); granting again overwrites
"""

from ..extensions import db
from ..models import User, UserPermission, SecurityEvent
from ..permissions import has_permission, validate_permission_code
from stockroom.time_utils import utcnow


class PermissionDeniedError(Exception):
    """Raised when user lacks required permission."""

    def __init__(self, message: str, permission: str | None = None):
        super().__init__(message)
        self.permission = permission


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
    commit: bool = True,
) -> SecurityEvent:
    """
    Log security event to audit trail.

    event_type examples:
    - PERMISSION_DENIED
    - ROLE_DENIED
    - LOGIN_FAILED
    - LOGIN_BLOCKED
    - LOGOUT
    - USER_SIGNED_UP
    - USER_UPDATED
    - PERMISSION_GRANTED
    - PERMISSION_REVOKED

    commit=False lets callers fold the event into their own transaction.
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    if commit:
        db.session.commit()
    else:
        db.session.flush()

    return event


def get_user_grants(user_id: int) -> set[str]:
    """Permission codes explicitly granted to a user (role defaults excluded)."""
    rows = db.session.query(UserPermission.permission_name).filter_by(user_id=user_id).all()
    return {row[0] for row in rows}


def list_user_grants(user_id: int) -> list[UserPermission]:
    return (
        db.session.query(UserPermission)
        .filter_by(user_id=user_id)
        .order_by(UserPermission.permission_name.asc())
        .all()
    )


def user_has_permission(user: User, permission_code: str) -> bool:
    """
    Check a stored user's permission (role defaults + grants).

    Used outside a request (CLI); request handlers use SessionContext.can().
    """
    return has_permission(user.role, get_user_grants(user.id), permission_code)


def require_permission(
    ctx,
    permission_code: str,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """
    Require the session's user to have permission, raise PermissionDeniedError if not.

    Denials are logged to security_events.
    """
    if ctx.can(permission_code):
        return

    log_security_event(
        user_id=ctx.user.id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=permission_code,
        reason=f"Missing permission: {permission_code}",
        ip_address=ip_address,
        user_agent=user_agent,
    )
    raise PermissionDeniedError(f"Permission denied: {permission_code}", permission=permission_code)


def grant_permission(
    *,
    user_id: int,
    permission_code: str,
    granted_by_user_id: int | None,
) -> UserPermission:
    """
    Grant a permission to a user.

    Granting an already-granted permission overwrites granter and timestamp
    instead of failing on the unique constraint.
    """
    if not validate_permission_code(permission_code):
        raise ValueError(f"Permission '{permission_code}' not found")

    user = db.session.get(User, user_id)
    if not user:
        raise LookupError("User not found")

    grant = db.session.query(UserPermission).filter_by(
        user_id=user_id,
        permission_name=permission_code,
    ).first()

    if grant:
        grant.granted_by_user_id = granted_by_user_id
        grant.granted_at = utcnow()
    else:
        grant = UserPermission(
            user_id=user_id,
            permission_name=permission_code,
            granted_by_user_id=granted_by_user_id,
            granted_at=utcnow(),
        )
        db.session.add(grant)

    log_security_event(
        user_id=granted_by_user_id,
        event_type="PERMISSION_GRANTED",
        success=True,
        resource=f"user:{user_id}",
        action=permission_code,
        commit=False,
    )

    db.session.commit()
    return grant


def revoke_permission(
    *,
    user_id: int,
    permission_code: str,
    revoked_by_user_id: int | None,
) -> bool:
    """
    Revoke a granted permission. Returns False if it wasn't granted.

    Role defaults are unaffected: revoking can_view_insights from a
    supervisor leaves them with it.
    """
    grant = db.session.query(UserPermission).filter_by(
        user_id=user_id,
        permission_name=permission_code,
    ).first()

    if not grant:
        return False

    db.session.delete(grant)
    log_security_event(
        user_id=revoked_by_user_id,
        event_type="PERMISSION_REVOKED",
        success=True,
        resource=f"user:{user_id}",
        action=permission_code,
        commit=False,
    )
    db.session.commit()
    return True


def set_user_grants(
    *,
    user_id: int,
    permission_codes: list[str],
    granted_by_user_id: int | None,
) -> set[str]:
    """
    Replace a user's grants with exactly `permission_codes` (the permissions dialog save).

    Unchanged grants keep their original granter and timestamp.
    """
    wanted = set(permission_codes)
    unknown = sorted(code for code in wanted if not validate_permission_code(code))
    if unknown:
        raise ValueError(f"Unknown permissions: {', '.join(unknown)}")

    user = db.session.get(User, user_id)
    if not user:
        raise LookupError("User not found")

    existing = {grant.permission_name: grant for grant in list_user_grants(user_id)}

    for code, grant in existing.items():
        if code not in wanted:
            db.session.delete(grant)
            log_security_event(
                user_id=granted_by_user_id,
                event_type="PERMISSION_REVOKED",
                success=True,
                resource=f"user:{user_id}",
                action=code,
                commit=False,
            )

    for code in sorted(wanted - set(existing)):
        db.session.add(UserPermission(
            user_id=user_id,
            permission_name=code,
            granted_by_user_id=granted_by_user_id,
            granted_at=utcnow(),
        ))
        log_security_event(
            user_id=granted_by_user_id,
            event_type="PERMISSION_GRANTED",
            success=True,
            resource=f"user:{user_id}",
            action=code,
            commit=False,
        )

    db.session.commit()
    return wanted
