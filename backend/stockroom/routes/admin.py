# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/stockroom/routes/admin.py
"""
Administrative routes: user provisioning and profile management.

SECURITY: every route re-checks that the caller's stored profile role is
admin or super_admin. Nothing sent by the client is trusted for this.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import StockroomError
from ..permissions import ADMIN_ROLES, PERMISSION_DEFINITIONS, ROLES
from ..services import permission_service, profile_service, provisioning_service

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


@admin_bp.post("/create-user")
@require_auth
@require_role(*ADMIN_ROLES)
def create_user_route():
    """
    Provision an identity and its profile.

    Body: {username, email, password, role, company_id}
    company_id "none" means no company.

    Responses:
        200 {"success": true, "user": {id, email, username}}
        400 identity or profile creation failed (identity rolled back)
        401 missing/invalid token
        403 caller is not admin/super_admin
        500 unexpected error
    """
    try:
        data = request.get_json(silent=True) or {}

        user = provisioning_service.provision_user(
            username=data.get("username"),
            email=data.get("email"),
            password=data.get("password"),
            role=data.get("role"),
            company_id=data.get("company_id"),
        )

        permission_service.log_security_event(
            user_id=g.current_user.id,
            event_type="USER_CREATED",
            success=True,
            resource=request.path,
            action="POST",
            reason=f"Created {user['username']} ({user['id']})",
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify({"success": True, "user": user}), 200

    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@admin_bp.get("/roles")
@require_auth
@require_role(*ADMIN_ROLES)
def list_roles_route():
    """Roles and permission codes an administrator can assign."""
    return jsonify({
        "roles": list(ROLES),
        "permissions": [
            {"code": code, "name": name, "description": description}
            for code, name, description in PERMISSION_DEFINITIONS
        ],
    }), 200


@admin_bp.get("/profiles")
@require_auth
@require_role(*ADMIN_ROLES)
def list_profiles_route():
    try:
        return jsonify({"items": profile_service.list_profiles()}), 200
    except Exception:
        current_app.logger.exception("Failed to list profiles")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@admin_bp.patch("/profiles/<profile_id>")
@require_auth
@require_role(*ADMIN_ROLES)
def update_profile_route(profile_id: str):
    """Update role, permissions, is_active, company_id or username."""
    try:
        data = request.get_json(silent=True) or {}
        profile = profile_service.update_profile(profile_id, data)
        return jsonify({"profile": profile}), 200

    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@admin_bp.delete("/profiles/<profile_id>")
@require_auth
@require_role(*ADMIN_ROLES)
def delete_profile_route(profile_id: str):
    """Delete a profile and its identity. Administrators cannot delete themselves."""
    try:
        profile_service.delete_profile(profile_id, acting_user_id=g.current_user.id)
        return jsonify({"deleted": True}), 200

    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete profile")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
