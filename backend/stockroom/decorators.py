# Overview: Request and permission decorators for API routes.

from functools import wraps

from flask import g, jsonify, request

from .errors import PermissionDeniedError
from .services import permission_service, session_service


def _is_authenticated() -> bool:
    return hasattr(g, "current_user") and hasattr(g, "profile")


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets the following Flask g attributes:
    - g.current_user: the AuthIdentity
    - g.profile: the UserProfile (None when the identity has no profile)
    - g.session_context: the full SessionContext
    - g.token: the plaintext token presented

    Returns 401 {"error": "Unauthorized"} for a missing, invalid, expired or
    revoked token.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Unauthorized", "kind": "unauthorized"}), 401

        context = session_service.validate_session(token)
        if not context:
            return jsonify({"error": "Unauthorized", "kind": "unauthorized"}), 401

        g.current_user = context.user
        g.profile = context.profile
        g.session_context = context
        g.token = token

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require a specific permission from the caller's profile."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Unauthorized", "kind": "unauthorized"}), 401

            try:
                permission_service.require_permission(
                    g.profile,
                    permission_code,
                    user_id=g.current_user.id,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "kind": e.kind,
                    "required_permission": permission_code,
                    "message": str(e),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


def require_role(*roles: str):
    """
    Require the caller's profile role to be one of roles.

    Re-checked on every request from the stored profile, never from
    anything the client sends.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Unauthorized", "kind": "unauthorized"}), 401

            try:
                permission_service.require_role(
                    g.profile,
                    roles,
                    user_id=g.current_user.id,
                    resource=request.path,
                    ip_address=request.remote_addr,
                    user_agent=request.headers.get("User-Agent"),
                )
            except PermissionDeniedError as e:
                return jsonify({"error": str(e), "kind": e.kind}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
