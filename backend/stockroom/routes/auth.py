# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockroom/routes/auth.py
"""
Authentication API routes

- POST /api/auth/login    email or username + password -> token
- GET  /api/auth/session  current identity, profile and company
- POST /api/auth/refresh  rotate the token
- POST /api/auth/logout   revoke the token

Self-registration does not exist: users are provisioned by administrators
(POST /api/admin/create-user or `flask users create`).
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth
from ..services import auth_service, permission_service, session_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user, profile, session, token: str | None = None) -> dict:
    payload = {
        "user": user.to_dict(),
        "profile": profile.to_dict(include_company=True) if profile else None,
        "session": session.to_dict(),
    }
    if token is not None:
        payload["token"] = token
    return payload


@auth_bp.post("/login")
def login_route():
    """
    Authenticate and create a session token.

    401 for bad credentials, 403 for a deactivated profile.
    """
    try:
        data = request.get_json(silent=True) or {}
        login = data.get("email") or data.get("username") or data.get("identifier")
        password = data.get("password")

        if not login or not password:
            return jsonify({"error": "email/username and password required", "kind": "invalid"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        user = auth_service.authenticate(login, password)
        if not user:
            permission_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=request.path,
                action="POST",
                reason=f"Invalid credentials for {login}",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Invalid credentials", "kind": "unauthorized"}), 401

        profile = user.profile
        if profile is not None and not profile.is_active:
            permission_service.log_security_event(
                user_id=user.id,
                event_type="LOGIN_INACTIVE",
                success=False,
                resource=request.path,
                action="POST",
                reason="Profile deactivated",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Account is deactivated", "kind": "forbidden"}), 403

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address,
        )

        payload = _session_payload(user, profile, session, token)
        payload["message"] = "Login successful"
        return jsonify(payload), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@auth_bp.get("/session")
@require_auth
def session_route():
    """Current identity + profile (joined with company) for the presented token."""
    return jsonify(_session_payload(g.current_user, g.profile, g.session_context.session)), 200


@auth_bp.post("/refresh")
@require_auth
def refresh_route():
    """Rotate the presented token; the old token stops working."""
    try:
        rotated = session_service.refresh_session(g.token)
        if not rotated:
            return jsonify({"error": "Unauthorized", "kind": "unauthorized"}), 401

        session, token = rotated
        return jsonify(_session_payload(g.current_user, g.current_user.profile, session, token)), 200

    except Exception:
        current_app.logger.exception("Failed to refresh session")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the session token."""
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Unauthorized", "kind": "unauthorized"}), 401

        token = auth_header.split(" ", 1)[1]
        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Unauthorized", "kind": "unauthorized"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
