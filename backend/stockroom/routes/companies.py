# Overview: Flask API routes for company operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_role
from ..errors import StockroomError
from ..permissions import ADMIN_ROLES
from ..services import company_service

companies_bp = Blueprint("companies", __name__, url_prefix="/api/companies")


@companies_bp.get("")
@require_auth
@require_role(*ADMIN_ROLES)
def list_companies_route():
    """Companies newest first, each with user_count."""
    try:
        return jsonify({"items": company_service.list_companies()}), 200
    except Exception:
        current_app.logger.exception("Failed to list companies")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@companies_bp.post("")
@require_auth
@require_role(*ADMIN_ROLES)
def create_company_route():
    try:
        company = company_service.create_company(request.get_json(silent=True) or {})
        return jsonify({"company": company}), 201
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create company")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@companies_bp.patch("/<company_id>")
@require_auth
@require_role(*ADMIN_ROLES)
def update_company_route(company_id: str):
    try:
        company = company_service.update_company(company_id, request.get_json(silent=True) or {})
        return jsonify({"company": company}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update company")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@companies_bp.delete("/<company_id>")
@require_auth
@require_role(*ADMIN_ROLES)
def delete_company_route(company_id: str):
    try:
        company_service.delete_company(company_id)
        return jsonify({"deleted": True}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete company")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
