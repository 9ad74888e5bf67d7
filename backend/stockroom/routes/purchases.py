# Overview: Flask API routes for purchases operations; parses input and returns JSON responses.

from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from ..decorators import require_auth, require_permission
from ..errors import StockroomError
from ..services import pdf_service, purchase_service

purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.get("")
@require_auth
@require_permission("read")
def list_purchases_route():
    """Optional ?purchase_order_id= narrows the list to one order."""
    try:
        items = purchase_service.list_purchases(request.args.get("purchase_order_id"))
        return jsonify({"items": items}), 200
    except Exception:
        current_app.logger.exception("Failed to list purchases")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@purchases_bp.post("")
@require_auth
@require_permission("create")
def create_purchase_route():
    try:
        purchase = purchase_service.create_purchase(request.get_json(silent=True) or {})
        return jsonify({"purchase": purchase}), 201
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create purchase")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@purchases_bp.patch("/<purchase_id>")
@require_auth
@require_permission("update")
def update_purchase_route(purchase_id: str):
    try:
        purchase = purchase_service.update_purchase(purchase_id, request.get_json(silent=True) or {})
        return jsonify({"purchase": purchase}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update purchase")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@purchases_bp.delete("/<purchase_id>")
@require_auth
@require_permission("delete")
def delete_purchase_route(purchase_id: str):
    try:
        purchase_service.delete_purchase(purchase_id)
        return jsonify({"deleted": True}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete purchase")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@purchases_bp.get("/<purchase_id>/purchase-order.pdf")
@require_auth
@require_permission("read")
def purchase_order_route(purchase_id: str):
    """Download purchase-order-<purchase_order_id or id>.pdf with every line of the order."""
    try:
        purchase = purchase_service.get_purchase(purchase_id)
        filename, data = pdf_service.purchase_order_pdf(
            purchase,
            purchase_service.order_lines(purchase),
            currency=current_app.config["PDF_CURRENCY_SYMBOL"],
        )
        return send_file(
            BytesIO(data),
            mimetype="application/pdf",
            as_attachment=True,
            download_name=filename,
        )
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to generate purchase order")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
