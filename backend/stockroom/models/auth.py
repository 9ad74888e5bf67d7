from __future__ import annotations

from ..extensions import db
from ..permissions import ROLES
from ..time_utils import to_utc_z, utcnow
from .common import new_uuid


class AuthIdentity(db.Model):
    """
    Authentication identity (email + bcrypt password).

    Kept apart from UserProfile: an identity is what logs in, a profile is what
    the application authorizes. Provisioning creates both and removes the
    identity again if the profile cannot be written.
    """
    __tablename__ = "auth_users"

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    # Free-form attributes set at sign-up (username)
    user_metadata = db.Column(db.JSON, nullable=False, default=dict)

    email_confirmed_at = db.Column(db.DateTime(timezone=True), nullable=True)
    last_sign_in_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<AuthIdentity id={self.id} email={self.email!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "user_metadata": self.user_metadata or {},
            "email_confirmed_at": to_utc_z(self.email_confirmed_at),
            "last_sign_in_at": to_utc_z(self.last_sign_in_at),
            "created_at": to_utc_z(self.created_at),
        }


class SessionToken(db.Model):
    """
    Server-side session tokens.

    Only the SHA-256 hash of the token is stored; the plaintext is handed to
    the client once at login or refresh.

    Sessions expire after 24 hours (absolute) or 2 hours without use (idle).
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_revoked", "user_id", "is_revoked"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("auth_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # SHA-256 hash of the token
    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)  # IPv6 max length

    identity = db.relationship("AuthIdentity", backref=db.backref("sessions", lazy=True, cascade="all, delete-orphan", passive_deletes=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }


class UserProfile(db.Model):
    """
    Application-level user record: role, permissions and company.

    Exactly one profile per identity. The role is constrained in the database;
    the permission list is seeded from the role and editable afterwards.
    """
    __tablename__ = "user_profiles"
    __table_args__ = (
        db.CheckConstraint(
            "role IN (" + ", ".join(f"'{r}'" for r in ROLES) + ")",
            name="ck_user_profiles_role",
        ),
        db.Index("ix_user_profiles_company", "company_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_uuid)
    user_id = db.Column(
        db.String(36),
        db.ForeignKey("auth_users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    company_id = db.Column(
        db.String(36),
        db.ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
    )

    username = db.Column(db.String(64), nullable=False, unique=True)
    role = db.Column(db.String(32), nullable=False, default="staff")
    permissions = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
        server_default=db.func.now(),
    )

    identity = db.relationship("AuthIdentity", backref=db.backref("profile", uselist=False, cascade="all, delete-orphan", passive_deletes=True))
    company = db.relationship("Company", backref=db.backref("profiles", lazy=True, passive_deletes=True))

    def __repr__(self) -> str:
        return f"<UserProfile id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self, include_company: bool = False) -> dict:
        data = {
            "id": self.id,
            "user_id": self.user_id,
            "company_id": self.company_id,
            "username": self.username,
            "role": self.role,
            "permissions": list(self.permissions or []),
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_company:
            data["company"] = self.company.to_dict() if self.company else None
        return data
