# Overview: Service-layer operations for sales; encapsulates business logic and database work.

from __future__ import annotations

import logging

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Sale
from ..models.sales import SALE_STATUSES
from ..validation import ModelValidationPolicy, enforce_choice, enforce_non_negative, validate_payload

logger = logging.getLogger(__name__)

SALE_POLICY = ModelValidationPolicy(
    writable_fields={
        "product_id", "product_name", "quantity", "unit_price", "total_amount",
        "date", "status", "customer_name", "notes",
    },
    required_on_create={"product_id", "product_name", "quantity", "unit_price"},
)


def _enforce_rules(patch: dict) -> None:
    enforce_choice(patch, "status", SALE_STATUSES)
    enforce_non_negative(patch, "unit_price", "total_amount")
    if "quantity" in patch and patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")


def list_sales() -> list[dict]:
    rows = db.session.query(Sale).order_by(Sale.date.desc(), Sale.created_at.desc()).all()
    return [s.to_dict() for s in rows]


def get_sale(sale_id: str) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


def create_sale(payload: dict) -> dict:
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False)
    _enforce_rules(patch)
    if patch.get("total_amount") is None:
        patch["total_amount"] = patch["unit_price"] * patch["quantity"]

    sale = Sale(**patch)
    db.session.add(sale)
    db.session.commit()
    logger.info("Sale recorded: %s x%s", sale.product_name, sale.quantity)
    return sale.to_dict()


def update_sale(sale_id: str, payload: dict) -> dict:
    sale = get_sale(sale_id)
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=True)
    _enforce_rules(patch)

    for k, v in patch.items():
        setattr(sale, k, v)
    if ("quantity" in patch or "unit_price" in patch) and "total_amount" not in patch:
        sale.total_amount = sale.unit_price * sale.quantity

    db.session.commit()
    return sale.to_dict()


def delete_sale(sale_id: str) -> None:
    sale = get_sale(sale_id)
    db.session.delete(sale)
    db.session.commit()
    logger.info("Sale deleted: %s", sale_id)
