# Overview: Service-layer operations for auth; sign-up, password hashing and credential checks.

"""
Authentication Service

WHY: Every stock movement and invoice must be attributable to a person.
Uses bcrypt for secure password hashing and validates password strength.

ACCOUNT LIFECYCLE:
- sign_up() creates a user with role="pending", status="pending"
- A manager approves the account (see user_service.update_user)
- Only status="active" users can log in

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
import re
from ..extensions import db
from ..models import User
from ..permissions import ROLE_PENDING
from stockroom.time_utils import utcnow


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class SignUpError(ValueError):
    """Raised when a sign-up request is rejected (bad email, duplicate, domain)."""
    pass


class AccountNotActiveError(Exception):
    """Raised when credentials are valid but the account cannot log in yet."""

    def __init__(self, status: str):
        self.status = status
        if status == "pending":
            message = "Account is pending approval by a manager"
        else:
            message = f"Account is {status}"
        super().__init__(message)


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    A malformed stored hash verifies as False rather than erroring.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def create_user(
    email: str,
    password: str,
    full_name: str | None = None,
    role: str = ROLE_PENDING,
    status: str = "pending",
) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        SignUpError: If the email is malformed or already registered
        PasswordValidationError: If password doesn't meet requirements
    """
    email = normalize_email(email)
    if not _EMAIL_RE.match(email):
        raise SignUpError("A valid email address is required")

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise SignUpError("An account with this email already exists")

    password_hash = hash_password(password)

    user = User(
        email=email,
        full_name=(full_name or "").strip() or None,
        password_hash=password_hash,
        role=role,
        status=status,
    )

    db.session.add(user)
    db.session.commit()
    return user


def sign_up(email: str, password: str, full_name: str | None, allowed_domain: str | None = None) -> User:
    """
    Self-service registration. The account starts pending until a manager approves it.

    allowed_domain: when set (e.g. "zola-pizza.com"), only addresses on that
    domain may register.
    """
    normalized = normalize_email(email)
    if allowed_domain:
        domain = allowed_domain.strip().lstrip("@").lower()
        if not normalized.endswith("@" + domain):
            raise SignUpError(f"Only @{domain} email addresses can sign up")

    return create_user(normalized, password, full_name=full_name)


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid and the account is active, None if the
    credentials are wrong. Raises AccountNotActiveError if the credentials
    are right but the account is pending or inactive.

    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter_by(email=normalize_email(email)).first()

    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    if not user.is_active:
        raise AccountNotActiveError(user.status)

    user.last_login_at = utcnow()
    db.session.commit()
    return user
