# Overview: Service-layer operations for auth identities; encapsulates business logic and database work.

"""
Authentication Service

Identities are email + bcrypt password. A profile (see profile_service) is
what the application authorizes; an identity is only what logs in.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 6 characters required
- Session tokens managed separately (see session_service.py)
- Login accepts either the email or the profile username
"""

import logging

import bcrypt

from ..errors import ValidationError, ConflictError, NotFoundError
from ..extensions import db
from ..models import AuthIdentity, UserProfile
from ..time_utils import utcnow

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """Hash password using bcrypt with cost factor 12 (validated first)."""
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe check; malformed hashes simply fail."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def create_identity(
    email: str,
    password: str,
    *,
    user_metadata: dict | None = None,
    email_confirm: bool = True,
    commit: bool = True,
) -> AuthIdentity:
    """
    Create an authentication identity.

    Raises:
        ValidationError: missing/invalid email or weak password
        ConflictError: email already registered
    """
    email = normalize_email(email)
    if not email or "@" not in email:
        raise ValidationError("A valid email address is required")

    if db.session.query(AuthIdentity).filter_by(email=email).first():
        raise ConflictError("A user with this email address has already been registered")

    identity = AuthIdentity(
        email=email,
        password_hash=hash_password(password),
        user_metadata=dict(user_metadata or {}),
        email_confirmed_at=utcnow() if email_confirm else None,
    )
    db.session.add(identity)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return identity


def delete_identity(user_id: str) -> None:
    """Delete an identity together with its profile and sessions."""
    identity = db.session.get(AuthIdentity, user_id)
    if not identity:
        raise NotFoundError("User not found")
    db.session.delete(identity)
    db.session.commit()
    logger.info("Deleted auth identity %s", user_id)


def find_identity(login: str) -> AuthIdentity | None:
    """Look an identity up by email, falling back to the profile username."""
    login = (login or "").strip()
    if not login:
        return None

    identity = db.session.query(AuthIdentity).filter_by(email=normalize_email(login)).first()
    if identity:
        return identity

    profile = db.session.query(UserProfile).filter_by(username=login).first()
    return profile.identity if profile else None


def authenticate(login: str, password: str) -> AuthIdentity | None:
    """
    Authenticate with email or username + password.

    Returns the identity if credentials are valid, None otherwise. Whether the
    profile is active is the caller's concern (login answers 403 for that).
    """
    identity = find_identity(login)
    if not identity:
        return None

    if verify_password(password or "", identity.password_hash):
        return identity

    return None
