# Overview: Service-layer operations for user administration and self-service profiles.

"""
User Service

MANAGER ACTIONS:
- Approve a pending account (status -> active; role pending -> staff unless given)
- Change role among manager / supervisor / staff
- Deactivate / reactivate (status inactive <-> active)
A manager cannot change their own role or status, so the last manager
can never lock everyone out by accident.

Deactivating a user revokes all their sessions in the same transaction.
Every change is written to security_events as USER_UPDATED.
"""

from __future__ import annotations

from ..extensions import db
from ..models import User
from ..permissions import ASSIGNABLE_ROLES, ROLE_PENDING, ROLE_STAFF
from ..validation import ConflictError, NotFoundError, ValidationError
from .permission_service import get_user_grants, log_security_event
from .session_service import revoke_all_user_sessions

USER_STATUSES = ("active", "pending", "inactive")

MAX_FULL_NAME = 255


def user_summary(user: User) -> dict:
    data = user.to_dict()
    data["permissions"] = sorted(get_user_grants(user.id))
    return data


def list_users(*, status: str | None = None) -> list[User]:
    query = db.session.query(User)
    if status:
        query = query.filter(User.status == status)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def update_user(ctx, *, user_id: int, payload: dict) -> User:
    """
    Manager update of another user's role and/or status.

    Raises:
        ValidationError: unknown field or value
        ConflictError: manager editing their own role/status
        NotFoundError: user not found
    """
    payload = payload or {}
    unknown = sorted(k for k in payload if k not in {"role", "status"})
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}")
    if not payload:
        raise ValidationError("Nothing to update: provide role and/or status")

    user = get_user(user_id)
    if user.id == ctx.user_id:
        raise ConflictError("You cannot change your own role or status")

    role = payload.get("role")
    status = payload.get("status")

    if role is not None and role not in ASSIGNABLE_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(ASSIGNABLE_ROLES)}")
    if status is not None and status not in USER_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(USER_STATUSES)}")

    changes = []

    if role is not None and role != user.role:
        changes.append(f"role {user.role} -> {role}")
        user.role = role

    if status is not None and status != user.status:
        changes.append(f"status {user.status} -> {status}")
        user.status = status
        if status == "active" and user.role == ROLE_PENDING:
            changes.append(f"role {ROLE_PENDING} -> {ROLE_STAFF}")
            user.role = ROLE_STAFF
        if status != "active":
            revoke_all_user_sessions(user.id, reason=f"Account {status}", commit=False)

    if user.status == "active" and user.role == ROLE_PENDING:
        raise ValidationError("An active user needs a role other than pending")

    if changes:
        log_security_event(
            user_id=ctx.user_id,
            event_type="USER_UPDATED",
            success=True,
            resource=f"user:{user.id}",
            action="update_user",
            reason="; ".join(changes),
            commit=False,
        )

    db.session.commit()
    return user


def update_profile(user: User, payload: dict) -> User:
    """Self-service: only full_name is editable here (avatar has its own upload)."""
    payload = payload or {}
    unknown = sorted(k for k in payload if k != "full_name")
    if unknown:
        raise ValidationError(f"Field not allowed: {unknown[0]}")

    if "full_name" in payload:
        full_name = payload["full_name"]
        if full_name is not None and not isinstance(full_name, str):
            raise ValidationError("full_name must be a string")
        full_name = (full_name or "").strip()
        if len(full_name) > MAX_FULL_NAME:
            raise ValidationError(f"full_name exceeds max length {MAX_FULL_NAME}")
        user.full_name = full_name or None

    db.session.commit()
    return user


def set_avatar(user: User, avatar_url: str) -> User:
    user.avatar_url = avatar_url
    db.session.commit()
    return user
