# Overview: Service-layer operations for permission; encapsulates business logic and database work.

"""
Permission Checking and Security Event Logging

DESIGN PRINCIPLES:
- Fail closed: no profile, inactive profile or unknown role means denied
- super_admin bypasses the permission list
- Log denials only: grants are not logged
"""

from ..errors import PermissionDeniedError
from ..extensions import db
from ..models import SecurityEvent, UserProfile
from ..permissions import ROLE_SUPER_ADMIN
from ..time_utils import utcnow


def log_security_event(
    user_id: str | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Append a security event.

    event_type examples:
    - PERMISSION_DENIED
    - ROLE_DENIED
    - LOGIN_FAILED
    - LOGIN_INACTIVE
    - USER_CREATED
    - USER_PROVISIONING_ROLLED_BACK
    - BACKUP_RESTORED
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
    db.session.commit()

    return event


def profile_has_permission(profile: UserProfile | None, permission_code: str) -> bool:
    if profile is None or not profile.is_active:
        return False
    if profile.role == ROLE_SUPER_ADMIN:
        return True
    return permission_code in (profile.permissions or [])


def profile_has_role(profile: UserProfile | None, *roles: str) -> bool:
    if profile is None or not profile.is_active:
        return False
    return profile.role in roles


def require_permission(
    profile: UserProfile | None,
    permission_code: str,
    *,
    user_id: str | None = None,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """Raise PermissionDeniedError (and log it) unless the profile holds the permission."""
    if profile_has_permission(profile, permission_code):
        return

    log_security_event(
        user_id=user_id,
        event_type="PERMISSION_DENIED",
        success=False,
        resource=resource,
        action=permission_code,
        reason=f"Missing permission: {permission_code}",
        ip_address=ip_address,
        user_agent=user_agent,
    )
    raise PermissionDeniedError(f"Permission denied: {permission_code}")


def require_role(
    profile: UserProfile | None,
    roles: tuple[str, ...],
    *,
    user_id: str | None = None,
    resource: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> None:
    """Raise PermissionDeniedError (and log it) unless the profile has one of the roles."""
    if profile_has_role(profile, *roles):
        return

    log_security_event(
        user_id=user_id,
        event_type="ROLE_DENIED",
        success=False,
        resource=resource,
        action=",".join(roles),
        reason="No profile" if profile is None else f"Role {profile.role} not in {', '.join(roles)}",
        ip_address=ip_address,
        user_agent=user_agent,
    )
    raise PermissionDeniedError("Insufficient permissions")
