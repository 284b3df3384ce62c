# Overview: Service-layer operations for session; bearer tokens and the per-request session context.

"""
Session Token Management Service

WHY: Secure session management with automatic timeout and revocation.
Tokens are cryptographically secure, hashed in database, and time-limited.

SESSION CONTEXT:
validate_session() returns a SessionContext carrying the user, their role
and their explicit grants. It is handed to services that need to know who
is acting instead of services reading a global "current user".

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- 24-hour absolute timeout (SESSION_ABSOLUTE_TIMEOUT)
- 2-hour idle timeout (SESSION_IDLE_TIMEOUT)
- Revoked when the user is deactivated
"""

import secrets
import hashlib
from dataclasses import dataclass, field
from datetime import timedelta
from ..extensions import db
from ..models import SessionToken, User
from ..permissions import has_permission, resolve_permissions
from .permission_service import get_user_grants
from stockroom.time_utils import utcnow


# Configuration constants
SESSION_ABSOLUTE_TIMEOUT = timedelta(hours=24)  # Maximum session length
SESSION_IDLE_TIMEOUT = timedelta(hours=2)        # Activity timeout


@dataclass
class SessionContext:
    """
    Authenticated actor for one request.

    granted holds explicit grants only; role defaults are applied by
    the resolver in can().
    """
    user: User
    session: SessionToken | None
    role: str
    granted: frozenset = field(default_factory=frozenset)

    @property
    def user_id(self) -> int:
        return self.user.id

    def can(self, permission: str) -> bool:
        return has_permission(self.role, self.granted, permission)

    def has_role(self, *roles: str) -> bool:
        return self.role in roles

    def capabilities(self) -> dict[str, bool]:
        return resolve_permissions(self.role, self.granted)


def build_context(user: User, session: SessionToken | None = None) -> SessionContext:
    """Context for a user loaded outside the request cycle (CLI, tests)."""
    return SessionContext(
        user=user,
        session=session,
        role=user.role,
        granted=frozenset(get_user_grants(user.id)),
    )


def generate_token() -> str:
    """
    Generate cryptographically secure random token.

    Returns 64-character hex string (32 bytes of entropy).
    This is the plaintext token sent to client (never stored).
    """
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    WHY SHA-256 not bcrypt: Tokens are already high-entropy (unlike passwords).
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.

    Raises ValueError if the user is missing or not active.
    """
    user = db.session.get(User, user_id)
    if not user:
        raise ValueError("User not found")
    if not user.is_active:
        raise ValueError("User account is not active")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + SESSION_ABSOLUTE_TIMEOUT,
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if:
    - Token is invalid, expired, or revoked
    - User account is no longer active (pending / inactive)

    Updates last_used_at on successful validation (activity tracking).
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > SESSION_IDLE_TIMEOUT:
        _revoke(session, "Idle timeout")
        db.session.commit()
        return None

    user = session.user

    # SECURITY: Deactivated users lose their sessions on next use
    if not user or not user.is_active:
        _revoke(session, "User account not active")
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(
        user=user,
        session=session,
        role=user.role,
        granted=frozenset(get_user_grants(user.id)),
    )


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """
    Revoke session token.

    Returns True if session was revoked, False if not found.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def revoke_all_user_sessions(user_id: int, reason: str = "Revoke all sessions", commit: bool = True) -> int:
    """
    Revoke all active sessions for a user.

    WHY: Deactivation must take effect immediately on every device.
    """
    sessions = db.session.query(SessionToken).filter_by(
        user_id=user_id,
        is_revoked=False
    ).all()

    for session in sessions:
        _revoke(session, reason)

    if commit:
        db.session.commit()
    return len(sessions)


def cleanup_expired_sessions() -> int:
    """
    Delete expired and revoked sessions older than 30 days.

    Returns count of sessions deleted.
    """
    now = utcnow()
    cutoff = now - timedelta(days=30)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True)
        ),
        SessionToken.created_at < cutoff
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
