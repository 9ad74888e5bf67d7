# Overview: Service-layer operations for user profiles; encapsulates business logic and database work.

"""
User profile management (administrators only, enforced by the routes).

A profile's permission list starts from the role defaults and can be edited
afterwards. company_id "none" (or "") means no company.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Company, UserProfile
from ..permissions import ROLES, default_permissions_for, validate_permission_code
from ..validation import ModelValidationPolicy, enforce_choice, validate_payload
from . import auth_service, session_service

logger = logging.getLogger(__name__)

PROFILE_POLICY = ModelValidationPolicy(
    writable_fields={"username", "role", "permissions", "is_active", "company_id"},
    required_on_create={"username", "role"},
)

NO_COMPANY = ("none", "")


def normalize_company_id(company_id) -> str | None:
    if company_id is None or company_id in NO_COMPANY:
        return None
    if not isinstance(company_id, str):
        raise ValidationError("company_id must be a string")
    if not db.session.get(Company, company_id):
        raise ValidationError("company_id does not reference an existing company")
    return company_id


def clean_permissions(permissions) -> list[str]:
    if not isinstance(permissions, list):
        raise ValidationError("permissions must be a list")
    cleaned = []
    for code in permissions:
        if not isinstance(code, str) or not validate_permission_code(code):
            raise ValidationError(f"Unknown permission: {code}")
        if code not in cleaned:
            cleaned.append(code)
    return cleaned


def validate_profile_fields(payload: dict, *, partial: bool) -> dict:
    payload = dict(payload or {})
    has_company = "company_id" in payload
    company_id = payload.pop("company_id", None)

    patch = validate_payload(model=UserProfile, payload=payload, policy=PROFILE_POLICY, partial=partial)
    enforce_choice(patch, "role", ROLES)
    if "permissions" in patch:
        patch["permissions"] = clean_permissions(patch["permissions"])
    if has_company:
        patch["company_id"] = normalize_company_id(company_id)
    return patch


def list_profiles() -> list[dict]:
    rows = db.session.query(UserProfile).order_by(UserProfile.created_at.desc()).all()
    items = []
    for profile in rows:
        data = profile.to_dict(include_company=True)
        data["email"] = profile.identity.email if profile.identity else None
        items.append(data)
    return items


def get_profile(profile_id: str) -> UserProfile:
    profile = db.session.get(UserProfile, profile_id)
    if not profile:
        raise NotFoundError("Profile not found")
    return profile


def get_profile_for_user(user_id: str) -> UserProfile | None:
    return db.session.query(UserProfile).filter_by(user_id=user_id).first()


def build_profile(*, user_id: str, username: str, role: str, company_id=None, permissions=None) -> UserProfile:
    """Validate and construct (not add) a profile for an identity."""
    payload = {"username": username, "role": role, "company_id": company_id}
    if permissions is not None:
        payload["permissions"] = permissions
    patch = validate_profile_fields(payload, partial=False)
    if "permissions" not in patch:
        patch["permissions"] = default_permissions_for(patch["role"])
    return UserProfile(user_id=user_id, is_active=True, **patch)


def update_profile(profile_id: str, payload: dict) -> dict:
    profile = get_profile(profile_id)
    payload = dict(payload or {})
    patch = validate_profile_fields(payload, partial=True)

    # A role change without an explicit list resets permissions to the role defaults
    if "role" in patch and "permissions" not in patch and patch["role"] != profile.role:
        patch["permissions"] = default_permissions_for(patch["role"])

    for k, v in patch.items():
        setattr(profile, k, v)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Profile %s update rejected by the database", profile_id)
        raise ConflictError("Username may already exist")

    if patch.get("is_active") is False:
        revoked = session_service.revoke_all_user_sessions(profile.user_id, reason="Profile deactivated")
        logger.info("Profile %s deactivated, %d session(s) revoked", profile_id, revoked)
    return profile.to_dict(include_company=True)


def delete_profile(profile_id: str, *, acting_user_id: str) -> None:
    """Delete a profile together with its identity."""
    profile = get_profile(profile_id)
    if profile.user_id == acting_user_id:
        raise ValidationError("You cannot delete your own account")

    if profile.identity is not None:
        auth_service.delete_identity(profile.user_id)
    else:
        db.session.delete(profile)
        db.session.commit()
    logger.info("Profile deleted: %s", profile_id)
