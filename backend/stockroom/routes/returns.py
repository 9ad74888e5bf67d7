# Overview: Flask API routes for returns operations; parses input and returns JSON responses.

# backend/stockroom/routes/returns.py
"""
Purchase returns and sales returns.

    GET    /api/purchase-returns
    POST   /api/purchase-returns
    PATCH  /api/purchase-returns/<id>
    DELETE /api/purchase-returns/<id>
    POST   /api/purchase-returns/<id>/process   {"decision": "Approved", "processed_by": "..."}

/api/sales-returns has the same shape. processed_by defaults to the caller's
username.
"""

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import StockroomError
from ..services import return_service

returns_bp = Blueprint("returns", __name__, url_prefix="/api")

RETURN_KINDS = {
    "purchase-returns": return_service.PURCHASE_RETURNS,
    "sales-returns": return_service.SALES_RETURNS,
}
KIND_RULE = "<any('purchase-returns', 'sales-returns'):kind>"


def _actor() -> str:
    if g.profile is not None:
        return g.profile.username
    return g.current_user.email


@returns_bp.get(f"/{KIND_RULE}")
@require_auth
@require_permission("read")
def list_returns_route(kind: str):
    try:
        return jsonify({"items": return_service.list_returns(RETURN_KINDS[kind])}), 200
    except Exception:
        current_app.logger.exception("Failed to list %s", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@returns_bp.post(f"/{KIND_RULE}")
@require_auth
@require_permission("create")
def add_return_route(kind: str):
    """total_refund defaults to return_quantity * unit_price."""
    try:
        data = request.get_json(silent=True) or {}
        row = return_service.add_return(RETURN_KINDS[kind], data, actor=_actor())
        return jsonify({"return": row}), 201
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create %s entry", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@returns_bp.patch(f"/{KIND_RULE}/<return_id>")
@require_auth
@require_permission("update")
def update_return_route(kind: str, return_id: str):
    try:
        data = request.get_json(silent=True) or {}
        row = return_service.update_return(RETURN_KINDS[kind], return_id, data, actor=_actor())
        return jsonify({"return": row}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update %s entry", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@returns_bp.post(f"/{KIND_RULE}/<return_id>/process")
@require_auth
@require_permission("update")
def process_return_route(kind: str, return_id: str):
    try:
        data = request.get_json(silent=True) or {}
        row = return_service.process_return(
            RETURN_KINDS[kind],
            return_id,
            data.get("decision"),
            data.get("processed_by") or _actor(),
        )
        return jsonify({"return": row}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to process %s entry", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@returns_bp.delete(f"/{KIND_RULE}/<return_id>")
@require_auth
@require_permission("delete")
def delete_return_route(kind: str, return_id: str):
    try:
        return_service.delete_return(RETURN_KINDS[kind], return_id)
        return jsonify({"deleted": True}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete %s entry", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
