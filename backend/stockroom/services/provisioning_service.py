# Overview: Service-layer operations for privileged user provisioning; encapsulates business logic and database work.

"""
Two-step user provisioning.

1. Create the authentication identity (email confirmed, user_metadata.username).
2. Insert the profile that references it.

If step 2 fails the identity from step 1 is deleted again, so a failed
provisioning never leaves a login without a profile. There is no surrounding
transaction: each step commits on its own, and the cleanup is a separate
delete.

Authorization of the caller (admin / super_admin) is checked by the route
before anything here runs.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import NotFoundError, ProvisioningError, StockroomError
from ..extensions import db
from . import auth_service, profile_service

logger = logging.getLogger(__name__)


def _compensate(user_id: str) -> None:
    """Remove the identity created in step 1."""
    try:
        auth_service.delete_identity(user_id)
        logger.info("Rolled back auth identity %s after profile failure", user_id)
    except NotFoundError:
        logger.warning("Auth identity %s already gone after profile failure", user_id)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Could not delete auth identity %s after profile failure", user_id)


def provision_user(
    *,
    username: str,
    email: str,
    password: str,
    role: str,
    company_id: str | None = None,
) -> dict:
    """
    Create identity + profile. Returns {"id", "email", "username"}.

    Raises ProvisioningError (400) when either step fails.
    """
    username = (username or "").strip() if isinstance(username, str) else username

    # Step 1: identity
    try:
        identity = auth_service.create_identity(
            email,
            password,
            user_metadata={"username": username},
            email_confirm=True,
        )
    except StockroomError as e:
        raise ProvisioningError(str(e) or "Failed to create user")

    user_id = identity.id
    user_email = identity.email

    # Step 2: profile
    try:
        profile = profile_service.build_profile(
            user_id=user_id,
            username=username,
            role=role,
            company_id=company_id,
        )
        db.session.add(profile)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        _compensate(user_id)
        raise ProvisioningError("Failed to create user profile: username may already exist")
    except StockroomError as e:
        db.session.rollback()
        _compensate(user_id)
        raise ProvisioningError(f"Failed to create user profile: {e}")
    except Exception:
        db.session.rollback()
        logger.exception("Unexpected error creating profile for %s", user_id)
        _compensate(user_id)
        raise ProvisioningError("Failed to create user profile")

    logger.info("Provisioned user %s (%s) with role %s", username, user_email, profile.role)
    return {"id": user_id, "email": user_email, "username": username}
