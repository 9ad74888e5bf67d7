# backend/stockroom/services/products_service.py
"""
Products Service

Stock-derived fields:
- status: > 50 "In Stock", > 0 "Low Stock", otherwise "Out of Stock"
- ai_recommendation: "Optimal stock level" above 50, else "Consider restocking"
- reorder_point (default): max(10, floor(opening_stock * 0.2))

stock starts at opening_stock. Any write that touches stock re-derives
status and ai_recommendation.
"""
from __future__ import annotations

import logging
import math

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Product, Unit
from ..models.catalog import (
    STOCK_STATUS_IN_STOCK,
    STOCK_STATUS_LOW_STOCK,
    STOCK_STATUS_OUT_OF_STOCK,
)
from ..validation import ModelValidationPolicy, enforce_non_negative, validate_payload

logger = logging.getLogger(__name__)

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "sku", "barcode", "category_id", "unit_id",
        "price", "purchase_price", "sell_price",
        "opening_stock", "stock", "reorder_point", "image",
    },
    required_on_create={"name", "sku"},
)

OPTIMAL_STOCK_THRESHOLD = 50


def stock_status(stock: int) -> str:
    if stock > OPTIMAL_STOCK_THRESHOLD:
        return STOCK_STATUS_IN_STOCK
    if stock > 0:
        return STOCK_STATUS_LOW_STOCK
    return STOCK_STATUS_OUT_OF_STOCK


def stock_recommendation(stock: int) -> str:
    if stock > OPTIMAL_STOCK_THRESHOLD:
        return "Optimal stock level"
    return "Consider restocking"


def default_reorder_point(opening_stock: int) -> int:
    return max(10, math.floor(opening_stock * 0.2))


def derive_stock_fields(p: Product) -> None:
    p.status = stock_status(p.stock or 0)
    p.ai_recommendation = stock_recommendation(p.stock or 0)


def _check_references(patch: dict) -> None:
    if patch.get("category_id") and not db.session.get(Category, patch["category_id"]):
        raise ValidationError("category_id does not reference an existing category")
    if patch.get("unit_id") and not db.session.get(Unit, patch["unit_id"]):
        raise ValidationError("unit_id does not reference an existing unit")


def _commit_or_conflict(sku: str | None) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Product write rejected by the database (sku=%r)", sku)
        raise ConflictError("Product may already exist (duplicate SKU)")


def list_products() -> list[dict]:
    rows = db.session.query(Product).order_by(Product.name.asc(), Product.sku.asc()).all()
    return [p.to_dict() for p in rows]


def get_product(product_id: str) -> Product:
    p = db.session.get(Product, product_id)
    if not p:
        raise NotFoundError("Product not found")
    return p


def create_product(payload: dict) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_non_negative(
        patch, "price", "purchase_price", "sell_price", "opening_stock", "stock", "reorder_point"
    )
    _check_references(patch)

    opening = patch.get("opening_stock") or 0
    patch["opening_stock"] = opening
    patch.setdefault("stock", opening)
    if patch.get("reorder_point") is None:
        patch["reorder_point"] = default_reorder_point(opening)

    p = Product(**patch)
    derive_stock_fields(p)
    db.session.add(p)
    _commit_or_conflict(p.sku)

    logger.info("New product added: %s", p.name)
    return p.to_dict()


def update_product(product_id: str, payload: dict) -> dict:
    p = get_product(product_id)
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    enforce_non_negative(
        patch, "price", "purchase_price", "sell_price", "opening_stock", "stock", "reorder_point"
    )
    _check_references(patch)

    for k, v in patch.items():
        setattr(p, k, v)
    if "stock" in patch:
        derive_stock_fields(p)

    _commit_or_conflict(p.sku)
    return p.to_dict()


def delete_product(product_id: str) -> None:
    p = get_product(product_id)
    db.session.delete(p)
    db.session.commit()
    logger.info("Product deleted: %s (%s)", p.name, p.sku)
