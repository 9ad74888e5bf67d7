# Overview: Flask API routes for sales and purchase vouchers; parses input and returns JSON responses.

# backend/stockroom/routes/vouchers.py
"""
    GET    /api/sales-vouchers              list with items, newest first
    POST   /api/sales-vouchers              header + "items": [...]
    PATCH  /api/sales-vouchers/<id>         header fields (items replaced if given)
    DELETE /api/sales-vouchers/<id>         items go with it
    GET    /api/sales-vouchers/<id>/pdf     sales-voucher-<voucher_number>.pdf

    GET    /api/purchase-vouchers
    POST   /api/purchase-vouchers
    DELETE /api/purchase-vouchers/<id>
"""

from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from ..decorators import require_auth, require_permission
from ..errors import StockroomError
from ..services import pdf_service, voucher_service
from ..services.voucher_service import PURCHASE_VOUCHERS, SALES_VOUCHERS

vouchers_bp = Blueprint("vouchers", __name__, url_prefix="/api")

VOUCHER_KINDS = {
    "sales-vouchers": SALES_VOUCHERS,
    "purchase-vouchers": PURCHASE_VOUCHERS,
}
KIND_RULE = "<any('sales-vouchers', 'purchase-vouchers'):kind>"


@vouchers_bp.get(f"/{KIND_RULE}")
@require_auth
@require_permission("read")
def list_vouchers_route(kind: str):
    try:
        return jsonify({"items": voucher_service.list_vouchers(VOUCHER_KINDS[kind])}), 200
    except Exception:
        current_app.logger.exception("Failed to list %s", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@vouchers_bp.post(f"/{KIND_RULE}")
@require_auth
@require_permission("create")
def create_voucher_route(kind: str):
    try:
        voucher = voucher_service.create_voucher(VOUCHER_KINDS[kind], request.get_json(silent=True) or {})
        return jsonify({"voucher": voucher}), 201
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create %s entry", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@vouchers_bp.patch("/sales-vouchers/<voucher_id>")
@require_auth
@require_permission("update")
def update_sales_voucher_route(voucher_id: str):
    try:
        voucher = voucher_service.update_voucher(SALES_VOUCHERS, voucher_id, request.get_json(silent=True) or {})
        return jsonify({"voucher": voucher}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update sales voucher")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@vouchers_bp.delete(f"/{KIND_RULE}/<voucher_id>")
@require_auth
@require_permission("delete")
def delete_voucher_route(kind: str, voucher_id: str):
    try:
        voucher_service.delete_voucher(VOUCHER_KINDS[kind], voucher_id)
        return jsonify({"deleted": True}), 200
    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete %s entry", kind)
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500


@vouchers_bp.get("/sales-vouchers/<voucher_id>/pdf")
@require_auth
@require_permission("read")
def sales_voucher_pdf_route(voucher_id: str):
    try:
        voucher = voucher_service.get_voucher(SALES_VOUCHERS, voucher_id)
        config = current_app.config
        filename, data = pdf_service.sales_voucher_pdf(
            voucher,
            pdf_service.CompanyInfo(
                name=config["COMPANY_NAME"],
                address=config["COMPANY_ADDRESS"],
                phone=config["COMPANY_PHONE"],
            ),
            currency=config["PDF_CURRENCY_SYMBOL"],
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
        current_app.logger.exception("Failed to generate sales voucher PDF")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
