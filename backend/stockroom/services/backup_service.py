# Overview: Service-layer operations for backup and restore; encapsulates business logic and database work.

"""
Backup / Restore

A backup is one JSON document:

    {
      "products": [...],
      "sales": [...],
      "purchases": [...],
      "purchase_returns": [...],
      "exported_at": "2024-06-01T12:00:00Z"
    }

There is no checksum and no version marker.

Restore replaces the four tables in BACKUP_TABLES order. For each table all
rows are deleted and the snapshot rows inserted. Rows keep their ids (a row
without one gets a fresh id); keys that are not columns are ignored.

Default mode is NOT atomic across tables: every delete and every insert
commits on its own, so a failure leaves earlier tables replaced, the failing
table possibly emptied and later tables untouched. RestoreError reports which.
Atomic mode (BACKUP_RESTORE_ATOMIC or atomic=True) runs everything in one
transaction and rolls back on any failure.

Only one restore runs per process at a time (RestoreInProgressError).
"""
from __future__ import annotations

import json
import logging
import threading
from datetime import date, datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import BackupParseError, RestoreError, RestoreInProgressError, StockroomError
from ..extensions import db
from ..models import Category, Product, Purchase, PurchaseReturn, Sale, Unit
from ..models.common import money_str
from ..time_utils import to_iso_date, to_utc_z, utcnow
from ..validation import coerce_column_value, columns_by_key

logger = logging.getLogger(__name__)

# Restore order matters only for readability: none of these reference each other
BACKUP_TABLES = (
    ("products", Product),
    ("sales", Sale),
    ("purchases", Purchase),
    ("purchase_returns", PurchaseReturn),
)

_restore_lock = threading.Lock()


def _json_value(value):
    if isinstance(value, Decimal):
        return money_str(value)
    if isinstance(value, datetime):
        return to_utc_z(value)
    if isinstance(value, date):
        return to_iso_date(value)
    return value


def serialize_row(row) -> dict:
    return {key: _json_value(getattr(row, key)) for key in columns_by_key(type(row))}


def create_backup() -> dict:
    """
    Snapshot the four tables. Any read failure propagates; there is no
    partial backup.
    """
    document = {}
    for name, model in BACKUP_TABLES:
        rows = db.session.query(model).all()
        document[name] = [serialize_row(r) for r in rows]
    document["exported_at"] = to_utc_z(utcnow())

    logger.info(
        "Backup created: %s",
        ", ".join(f"{name}={len(document[name])}" for name, _ in BACKUP_TABLES),
    )
    return document


def backup_filename(exported_at: str) -> str:
    return f"inventory-backup-{exported_at.replace(':', '-')}.json"


def dump_backup(document: dict) -> str:
    return json.dumps(document, indent=2)


def parse_backup(raw) -> dict:
    """
    Parse uploaded bytes/str into a backup document.

    Raises BackupParseError for non-UTF-8, non-JSON, a non-object top level or
    a missing / non-list record set. Nothing is touched before this passes.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise BackupParseError("Backup file is not valid UTF-8")

    try:
        document = json.loads(raw)
    except (TypeError, ValueError):
        raise BackupParseError("Backup file is not valid JSON")

    validate_document(document)
    return document


def validate_document(document) -> None:
    if not isinstance(document, dict):
        raise BackupParseError("Invalid backup file format")

    for name, _ in BACKUP_TABLES:
        records = document.get(name)
        if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
            raise BackupParseError(f"Invalid backup file format: missing {name} list")


def _existing_ids(model) -> set[str]:
    return {row_id for (row_id,) in db.session.query(model.id).all()}


def _build_rows(name: str, model, records: list[dict]) -> list:
    cols = columns_by_key(model)
    lookups = {}
    if model is Product:
        # Categories and units are not part of a backup; drop references the
        # current database cannot satisfy
        lookups = {"category_id": _existing_ids(Category), "unit_id": _existing_ids(Unit)}

    rows = []
    for record in records:
        values = {}
        for key, raw in record.items():
            col = cols.get(key)
            if col is None:
                continue
            values[key] = coerce_column_value(col, raw)

        if not values.get("id"):
            values.pop("id", None)

        for key, known in lookups.items():
            if values.get(key) and values[key] not in known:
                logger.warning("Restore %s: dropping unknown %s=%s", name, key, values[key])
                values[key] = None

        rows.append(model(**values))
    return rows


def _replace_table(name: str, model, records: list[dict], *, commit: bool) -> int:
    db.session.query(model).delete(synchronize_session=False)
    if commit:
        db.session.commit()

    rows = _build_rows(name, model, records)
    db.session.add_all(rows)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return len(rows)


def restore_from_backup(raw, *, atomic: bool | None = None) -> dict:
    """
    Replace products, sales, purchases and purchase_returns with the
    snapshot in raw (bytes, str or an already parsed dict).

    Returns {"restored": {table: count}, "atomic": bool, "exported_at": ...}.

    Raises:
        RestoreInProgressError: another restore is running in this process
        BackupParseError: raw is not a valid backup document (nothing changed)
        RestoreError: a table failed midway
    """
    if not _restore_lock.acquire(blocking=False):
        raise RestoreInProgressError("A restore is already in progress")

    try:
        if isinstance(raw, dict):
            validate_document(raw)
            document = raw
        else:
            document = parse_backup(raw)

        if atomic is None:
            atomic = bool(current_app.config.get("BACKUP_RESTORE_ATOMIC", False))

        restored: dict[str, int] = {}
        completed: list[str] = []
        for name, model in BACKUP_TABLES:
            try:
                restored[name] = _replace_table(name, model, document[name], commit=not atomic)
            except (SQLAlchemyError, StockroomError) as e:
                db.session.rollback()
                logger.exception("Restore failed on table %s (atomic=%s)", name, atomic)
                raise RestoreError(
                    f"Restore failed on {name}: {e}",
                    failed_table=name,
                    completed_tables=completed,
                    atomic=atomic,
                )
            if not atomic:
                completed.append(name)
            logger.info("Restored %s: %d rows", name, restored[name])

        if atomic:
            try:
                db.session.commit()
            except SQLAlchemyError as e:
                db.session.rollback()
                logger.exception("Restore commit failed (atomic)")
                raise RestoreError(
                    f"Restore failed: {e}",
                    failed_table=None,
                    completed_tables=[],
                    atomic=True,
                )

        return {
            "restored": restored,
            "atomic": atomic,
            "exported_at": document.get("exported_at"),
        }
    finally:
        _restore_lock.release()
