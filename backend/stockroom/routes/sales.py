# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from ..decorators import require_auth, require_permission
from ..errors import StockroomError
from ..services import pdf_service, sales_service

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_permission("read")
def list_sales_route():
    try:
        return jsonify({"items": sales_service.list_sales()}), 200
    except Exception:
        current_app.logger.exception("Failed to list sales")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@sales_bp.post("")
@require_auth
@require_permission("create")
def create_sale_route():
    """total_amount defaults to quantity * unit_price."""
    try:
        sale = sales_service.create_sale(request.get_json(silent=True) or {})
        return jsonify({"sale": sale}), 201
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@sales_bp.patch("/<sale_id>")
@require_auth
@require_permission("update")
def update_sale_route(sale_id: str):
    try:
        sale = sales_service.update_sale(sale_id, request.get_json(silent=True) or {})
        return jsonify({"sale": sale}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update sale")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@sales_bp.delete("/<sale_id>")
@require_auth
@require_permission("delete")
def delete_sale_route(sale_id: str):
    try:
        sales_service.delete_sale(sale_id)
        return jsonify({"deleted": True}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete sale")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@sales_bp.get("/<sale_id>/invoice.pdf")
@require_auth
@require_permission("read")
def sale_invoice_route(sale_id: str):
    """Download sales-invoice-<id>.pdf."""
    try:
        sale = sales_service.get_sale(sale_id)
        filename, data = pdf_service.sales_invoice_pdf(
            sale, currency=current_app.config["PDF_CURRENCY_SYMBOL"]
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
        current_app.logger.exception("Failed to generate sales invoice")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
