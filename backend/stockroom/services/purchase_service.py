# Overview: Service-layer operations for purchases; encapsulates business logic and database work.

from __future__ import annotations

import logging

from ..errors import NotFoundError, ValidationError
from ..extensions import db
from ..models import Purchase
from ..models.purchasing import PURCHASE_STATUSES
from ..validation import ModelValidationPolicy, enforce_choice, enforce_non_negative, validate_payload

logger = logging.getLogger(__name__)

PURCHASE_POLICY = ModelValidationPolicy(
    writable_fields={
        "purchase_order_id", "product_id", "product_name", "supplier",
        "quantity", "unit_price", "total_amount", "date", "status", "notes",
    },
    required_on_create={"product_id", "product_name", "supplier", "quantity", "unit_price"},
)


def _enforce_rules(patch: dict) -> None:
    enforce_choice(patch, "status", PURCHASE_STATUSES)
    enforce_non_negative(patch, "unit_price", "total_amount")
    if "quantity" in patch and patch["quantity"] <= 0:
        raise ValidationError("quantity must be > 0")


def list_purchases(purchase_order_id: str | None = None) -> list[dict]:
    query = db.session.query(Purchase)
    if purchase_order_id:
        query = query.filter(Purchase.purchase_order_id == purchase_order_id)
    rows = query.order_by(Purchase.date.desc(), Purchase.created_at.desc()).all()
    return [p.to_dict() for p in rows]


def get_purchase(purchase_id: str) -> Purchase:
    purchase = db.session.get(Purchase, purchase_id)
    if not purchase:
        raise NotFoundError("Purchase not found")
    return purchase


def order_lines(purchase: Purchase) -> list[Purchase]:
    """All lines sharing the purchase's order id (just the purchase when it has none)."""
    if not purchase.purchase_order_id:
        return [purchase]
    return (
        db.session.query(Purchase)
        .filter(Purchase.purchase_order_id == purchase.purchase_order_id)
        .order_by(Purchase.created_at.asc())
        .all()
    )


def create_purchase(payload: dict) -> dict:
    patch = validate_payload(model=Purchase, payload=payload, policy=PURCHASE_POLICY, partial=False)
    _enforce_rules(patch)
    if patch.get("total_amount") is None:
        patch["total_amount"] = patch["unit_price"] * patch["quantity"]

    purchase = Purchase(**patch)
    db.session.add(purchase)
    db.session.commit()
    logger.info("Purchase recorded: %s x%s from %s", purchase.product_name, purchase.quantity, purchase.supplier)
    return purchase.to_dict()


def update_purchase(purchase_id: str, payload: dict) -> dict:
    purchase = get_purchase(purchase_id)
    patch = validate_payload(model=Purchase, payload=payload, policy=PURCHASE_POLICY, partial=True)
    _enforce_rules(patch)

    for k, v in patch.items():
        setattr(purchase, k, v)
    if ("quantity" in patch or "unit_price" in patch) and "total_amount" not in patch:
        purchase.total_amount = purchase.unit_price * purchase.quantity

    db.session.commit()
    return purchase.to_dict()


def delete_purchase(purchase_id: str) -> None:
    purchase = get_purchase(purchase_id)
    db.session.delete(purchase)
    db.session.commit()
    logger.info("Purchase deleted: %s", purchase_id)
