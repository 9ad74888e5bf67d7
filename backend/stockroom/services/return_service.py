# Overview: Service-layer operations for purchase and sales returns; encapsulates business logic and database work.

"""
Purchase returns and sales returns.

Both follow the same lifecycle:
    Pending -> Approved | Rejected | Processed

Any write that moves status away from Pending stamps processed_by and
processed_date (today) unless the caller supplied them. A return quantity
must be positive and may not exceed the original quantity.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import PurchaseReturn, SalesReturn
from ..models.sales import RETURN_STATUSES
from ..time_utils import today
from ..validation import (
    ModelValidationPolicy,
    enforce_choice,
    enforce_non_negative,
    enforce_return_quantities,
    validate_payload,
)

logger = logging.getLogger(__name__)

STATUS_PENDING = "Pending"
STATUS_APPROVED = "Approved"
STATUS_REJECTED = "Rejected"
STATUS_PROCESSED = "Processed"


@dataclass(frozen=True)
class ReturnKind:
    model: type
    label: str
    policy: ModelValidationPolicy
    decisions: tuple[str, ...]
    # Approved decisions are stored as Processed (sales returns)
    approve_as_processed: bool


PURCHASE_RETURNS = ReturnKind(
    model=PurchaseReturn,
    label="Purchase return",
    policy=ModelValidationPolicy(
        writable_fields={
            "id", "purchase_order_id", "purchase_item_id", "product_id", "product_name",
            "supplier", "original_quantity", "return_quantity", "unit_price", "total_refund",
            "return_date", "reason", "notes", "status", "processed_by", "processed_date",
        },
        required_on_create={
            "purchase_order_id", "purchase_item_id", "product_id", "product_name",
            "supplier", "original_quantity", "return_quantity", "unit_price", "reason",
        },
    ),
    decisions=(STATUS_APPROVED, STATUS_REJECTED, STATUS_PROCESSED),
    approve_as_processed=False,
)

SALES_RETURNS = ReturnKind(
    model=SalesReturn,
    label="Sales return",
    policy=ModelValidationPolicy(
        writable_fields={
            "original_sale_id", "product_id", "product_name", "return_quantity",
            "original_quantity", "unit_price", "total_refund", "return_date", "reason",
            "status", "customer_name", "notes", "processed_by", "processed_date",
        },
        required_on_create={
            "original_sale_id", "product_id", "product_name", "return_quantity",
            "original_quantity", "unit_price", "reason",
        },
    ),
    decisions=(STATUS_APPROVED, STATUS_REJECTED),
    approve_as_processed=True,
)


def _stamp_processing(row, patch: dict, actor: str | None) -> None:
    if "status" not in patch or patch["status"] == STATUS_PENDING:
        return
    if row is not None and row.status == patch["status"]:
        return
    if patch.get("processed_date") is None:
        patch["processed_date"] = today()
    if patch.get("processed_by") is None:
        patch["processed_by"] = actor


def _validated(kind: ReturnKind, payload: dict, *, partial: bool, row=None) -> dict:
    patch = validate_payload(model=kind.model, payload=payload, policy=kind.policy, partial=partial)
    enforce_choice(patch, "status", RETURN_STATUSES)
    enforce_non_negative(patch, "unit_price", "total_refund")

    if not partial or "return_quantity" in patch or "original_quantity" in patch:
        enforce_return_quantities(
            patch.get("return_quantity", getattr(row, "return_quantity", None)),
            patch.get("original_quantity", getattr(row, "original_quantity", None)),
        )
    return patch


def list_returns(kind: ReturnKind) -> list[dict]:
    model = kind.model
    rows = db.session.query(model).order_by(model.created_at.desc()).all()
    return [r.to_dict() for r in rows]


def get_return(kind: ReturnKind, return_id: str):
    row = db.session.get(kind.model, return_id)
    if not row:
        raise NotFoundError(f"{kind.label} not found")
    return row


def add_return(kind: ReturnKind, payload: dict, actor: str | None = None) -> dict:
    patch = _validated(kind, payload, partial=False)
    if not patch.get("id"):
        patch.pop("id", None)
    if patch.get("total_refund") is None:
        patch["total_refund"] = patch["unit_price"] * patch["return_quantity"]
    _stamp_processing(None, patch, actor)

    if patch.get("id") and db.session.get(kind.model, patch["id"]) is not None:
        raise ConflictError(f"{kind.label} may already exist")

    row = kind.model(**patch)
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Insert into %s failed for id=%r", kind.model.__tablename__, patch.get("id"))
        raise ConflictError(f"{kind.label} may already exist")
    logger.info("%s created: %s (%s x%s)", kind.label, row.id, row.product_name, row.return_quantity)
    return row.to_dict()


def update_return(kind: ReturnKind, return_id: str, payload: dict, actor: str | None = None) -> dict:
    row = get_return(kind, return_id)
    payload = dict(payload or {})
    if "id" in payload:
        if payload["id"] != row.id:
            raise ValidationError("id cannot be changed")
        payload.pop("id")

    patch = _validated(kind, payload, partial=True, row=row)
    _stamp_processing(row, patch, actor)

    for k, v in patch.items():
        setattr(row, k, v)
    if ("return_quantity" in patch or "unit_price" in patch) and "total_refund" not in patch:
        row.total_refund = row.unit_price * row.return_quantity

    db.session.commit()
    return row.to_dict()


def process_return(kind: ReturnKind, return_id: str, decision: str, processed_by: str) -> dict:
    """Record an approve/reject decision and who made it."""
    if decision not in kind.decisions:
        raise ValidationError(f"decision must be one of: {', '.join(kind.decisions)}")
    if not processed_by or not str(processed_by).strip():
        raise ValidationError("processed_by is required")

    row = get_return(kind, return_id)
    status = decision
    if decision == STATUS_APPROVED and kind.approve_as_processed:
        status = STATUS_PROCESSED

    row.status = status
    row.processed_by = str(processed_by).strip()
    row.processed_date = today()
    db.session.commit()

    logger.info("%s %s marked %s by %s", kind.label, row.id, status, row.processed_by)
    return row.to_dict()


def delete_return(kind: ReturnKind, return_id: str) -> None:
    row = get_return(kind, return_id)
    db.session.delete(row)
    db.session.commit()
    logger.info("%s deleted: %s", kind.label, return_id)
