# Overview: Flask API routes for products operations; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_auth, require_permission
from ..errors import StockroomError
from ..services import products_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("read")
def list_products_route():
    try:
        return jsonify({"items": products_service.list_products()}), 200
    except Exception:
        current_app.logger.exception("Failed to list products")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@products_bp.get("/<product_id>")
@require_auth
@require_permission("read")
def get_product_route(product_id: str):
    try:
        return jsonify({"product": products_service.get_product(product_id).to_dict()}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code


@products_bp.post("")
@require_auth
@require_permission("create")
def create_product_route():
    """
    Create a product. status, ai_recommendation and (unless given)
    reorder_point are derived from opening_stock.
    """
    try:
        product = products_service.create_product(request.get_json(silent=True) or {})
        return jsonify({"product": product}), 201
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@products_bp.patch("/<product_id>")
@require_auth
@require_permission("update")
def update_product_route(product_id: str):
    try:
        product = products_service.update_product(product_id, request.get_json(silent=True) or {})
        return jsonify({"product": product}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@products_bp.delete("/<product_id>")
@require_auth
@require_permission("delete")
def delete_product_route(product_id: str):
    try:
        products_service.delete_product(product_id)
        return jsonify({"deleted": True}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
