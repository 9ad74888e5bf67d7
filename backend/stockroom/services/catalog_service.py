# Overview: Service-layer operations for categories and units; encapsulates business logic and database work.

"""
Category and Unit management.

Both tables are a bare unique name. Uniqueness and "in use" are left to the
database (unique constraint, products FK with ON DELETE RESTRICT); the
IntegrityError is translated into ConflictError / InUseError and the session
is rolled back so the existing rows stay untouched.
"""
from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InUseError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Unit

logger = logging.getLogger(__name__)

# model -> human label used in error messages
CATALOG_MODELS = {
    "categories": (Category, "Category"),
    "units": (Unit, "Unit"),
}


def _resolve(kind: str):
    try:
        return CATALOG_MODELS[kind]
    except KeyError:
        raise NotFoundError(f"Unknown catalog: {kind}")


def _clean_name(name, label: str) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{label} name is required")
    name = name.strip()
    if len(name) > 128:
        raise ValidationError(f"{label} name exceeds max length 128")
    return name


def list_entries(kind: str) -> list[dict]:
    model, _ = _resolve(kind)
    rows = db.session.query(model).order_by(model.name.asc()).all()
    return [r.to_dict() for r in rows]


def add_entry(kind: str, name) -> dict:
    model, label = _resolve(kind)
    row = model(name=_clean_name(name, label))
    db.session.add(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Insert into %s failed for name=%r", kind, row.name)
        raise ConflictError(f"{label} may already exist")
    logger.info("%s added: %s", label, row.name)
    return row.to_dict()


def edit_entry(kind: str, entry_id: str, name) -> dict:
    model, label = _resolve(kind)
    cleaned = _clean_name(name, label)

    row = db.session.get(model, entry_id)
    if not row:
        raise NotFoundError(f"{label} not found")

    row.name = cleaned
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Update of %s %s failed for name=%r", kind, entry_id, cleaned)
        raise ConflictError(f"{label} may already exist")
    return row.to_dict()


def delete_entry(kind: str, entry_id: str) -> None:
    model, label = _resolve(kind)

    row = db.session.get(model, entry_id)
    if not row:
        raise NotFoundError(f"{label} not found")

    db.session.delete(row)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Delete of %s %s refused by the database", kind, entry_id)
        raise InUseError(f"{label} may be in use by products")
    logger.info("%s deleted: %s", label, entry_id)
