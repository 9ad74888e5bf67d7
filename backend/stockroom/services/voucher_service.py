# Overview: Service-layer operations for sales and purchase vouchers; encapsulates business logic and database work.

"""
Multi-line vouchers (header + items).

Totals are computed server-side from the items:
    total_amount = sum(item.quantity * item.unit_price)
    final_amount = total_amount - discount_amount

Voucher numbers default to "SV<epoch millis><3 digits>" / "PV<...>".
Deleting a voucher deletes its items.
"""
from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import PurchaseVoucher, PurchaseVoucherItem, SalesVoucher, SalesVoucherItem
from ..models.purchasing import PURCHASE_VOUCHER_STATUSES
from ..models.sales import SALE_STATUSES, VOUCHER_PAYMENT_METHODS
from ..validation import ModelValidationPolicy, enforce_choice, enforce_non_negative, validate_payload

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoucherKind:
    model: type
    item_model: type
    label: str
    prefix: str
    statuses: tuple[str, ...]
    header_policy: ModelValidationPolicy
    item_policy: ModelValidationPolicy


SALES_VOUCHERS = VoucherKind(
    model=SalesVoucher,
    item_model=SalesVoucherItem,
    label="Sales voucher",
    prefix="SV",
    statuses=SALE_STATUSES,
    header_policy=ModelValidationPolicy(
        writable_fields={
            "voucher_number", "customer_name", "discount_amount",
            "payment_method", "status", "notes", "date",
        },
        required_on_create=set(),
    ),
    item_policy=ModelValidationPolicy(
        writable_fields={"product_id", "product_name", "quantity", "unit_price"},
        required_on_create={"product_id", "product_name", "quantity", "unit_price"},
    ),
)

PURCHASE_VOUCHERS = VoucherKind(
    model=PurchaseVoucher,
    item_model=PurchaseVoucherItem,
    label="Purchase voucher",
    prefix="PV",
    statuses=PURCHASE_VOUCHER_STATUSES,
    header_policy=ModelValidationPolicy(
        writable_fields={
            "voucher_number", "supplier_name", "discount_amount",
            "payment_method", "status", "notes", "date",
        },
        required_on_create={"supplier_name"},
    ),
    item_policy=ModelValidationPolicy(
        writable_fields={"product_id", "product_name", "supplier", "quantity", "unit_price"},
        required_on_create={"product_id", "product_name", "quantity", "unit_price"},
    ),
)


def new_voucher_number(prefix: str) -> str:
    return f"{prefix}{int(time.time() * 1000)}{random.randint(0, 999):03d}"


def _validate_header(kind: VoucherKind, payload: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=kind.model, payload=payload, policy=kind.header_policy, partial=partial)
    enforce_choice(patch, "status", kind.statuses)
    enforce_choice(patch, "payment_method", VOUCHER_PAYMENT_METHODS)
    enforce_non_negative(patch, "discount_amount")
    return patch


def _build_items(kind: VoucherKind, raw_items) -> list:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    items = []
    for position, raw in enumerate(raw_items):
        patch = validate_payload(model=kind.item_model, payload=raw, policy=kind.item_policy, partial=False)
        enforce_non_negative(patch, "unit_price")
        if patch["quantity"] <= 0:
            raise ValidationError(f"items[{position}].quantity must be > 0")
        patch["total_amount"] = patch["unit_price"] * patch["quantity"]
        items.append(kind.item_model(position=position, **patch))
    return items


def _recompute_totals(voucher) -> None:
    total = sum((item.total_amount for item in voucher.items), Decimal("0.00"))
    discount = Decimal(voucher.discount_amount or 0)
    if discount > total:
        raise ValidationError("discount_amount cannot exceed the voucher total")
    voucher.total_amount = total
    voucher.discount_amount = discount
    voucher.final_amount = total - discount


def _commit(kind: VoucherKind, voucher_number: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("%s %s rejected by the database", kind.label, voucher_number)
        raise ConflictError(f"{kind.label} {voucher_number} may already exist")


def list_vouchers(kind: VoucherKind) -> list[dict]:
    model = kind.model
    rows = db.session.query(model).order_by(model.created_at.desc()).all()
    return [v.to_dict() for v in rows]


def get_voucher(kind: VoucherKind, voucher_id: str):
    voucher = db.session.get(kind.model, voucher_id)
    if not voucher:
        raise NotFoundError(f"{kind.label} not found")
    return voucher


def create_voucher(kind: VoucherKind, payload: dict) -> dict:
    payload = dict(payload or {})
    raw_items = payload.pop("items", None)

    patch = _validate_header(kind, payload, partial=False)
    if not patch.get("voucher_number"):
        patch["voucher_number"] = new_voucher_number(kind.prefix)

    voucher = kind.model(**patch)
    voucher.items = _build_items(kind, raw_items)
    _recompute_totals(voucher)

    db.session.add(voucher)
    _commit(kind, voucher.voucher_number)

    logger.info("%s created: %s (%d items)", kind.label, voucher.voucher_number, len(voucher.items))
    return voucher.to_dict()


def update_voucher(kind: VoucherKind, voucher_id: str, payload: dict) -> dict:
    """Update header fields; items are replaced when an items list is given."""
    voucher = get_voucher(kind, voucher_id)
    payload = dict(payload or {})
    raw_items = payload.pop("items", None)

    patch = _validate_header(kind, payload, partial=True)
    for k, v in patch.items():
        setattr(voucher, k, v)
    if raw_items is not None:
        voucher.items = _build_items(kind, raw_items)
    _recompute_totals(voucher)

    _commit(kind, voucher.voucher_number)
    return voucher.to_dict()


def delete_voucher(kind: VoucherKind, voucher_id: str) -> None:
    voucher = get_voucher(kind, voucher_id)
    db.session.delete(voucher)
    db.session.commit()
    logger.info("%s deleted: %s", kind.label, voucher.voucher_number)
