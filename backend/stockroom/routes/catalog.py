# Overview: Flask API routes for categories and units; parses input and returns JSON responses.

# backend/stockroom/routes/catalog.py
"""
Category and unit management.

    GET    /api/categories          list (by name)
    POST   /api/categories          {"name": ...}
    PATCH  /api/categories/<id>     {"name": ...}
    DELETE /api/categories/<id>

/api/units has the same shape. Duplicate names answer 409 already_exists,
deleting a row still used by a product answers 409 in_use.
"""

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import StockroomError
from ..services import catalog_service

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api")

CATALOG_KINDS = "<any(categories, units):kind>"


@catalog_bp.get(f"/{CATALOG_KINDS}")
@require_auth
@require_permission("read")
def list_entries_route(kind: str):
    try:
        return jsonify({"items": catalog_service.list_entries(kind)}), 200
    except Exception:
        current_app.logger.exception("Failed to list %s", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@catalog_bp.post(f"/{CATALOG_KINDS}")
@require_auth
@require_permission("create")
def add_entry_route(kind: str):
    try:
        data = request.get_json(silent=True) or {}
        entry = catalog_service.add_entry(kind, data.get("name"))
        return jsonify({"item": entry}), 201
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add %s entry", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@catalog_bp.patch(f"/{CATALOG_KINDS}/<entry_id>")
@require_auth
@require_permission("update")
def edit_entry_route(kind: str, entry_id: str):
    try:
        data = request.get_json(silent=True) or {}
        entry = catalog_service.edit_entry(kind, entry_id, data.get("name"))
        return jsonify({"item": entry}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to edit %s entry", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@catalog_bp.delete(f"/{CATALOG_KINDS}/<entry_id>")
@require_auth
@require_permission("delete")
def delete_entry_route(kind: str, entry_id: str):
    try:
        catalog_service.delete_entry(kind, entry_id)
        return jsonify({"deleted": True}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete %s entry", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
