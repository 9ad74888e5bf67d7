# Overview: Flask API routes for backup and restore; parses input and returns JSON responses.

# backend/stockroom/routes/backup.py
"""
Backup download and restore.

    GET  /api/backup            inventory-backup-<timestamp>.json attachment
    POST /api/backup/restore    multipart "file" field, or the JSON document as the body
                                ?atomic=true (or form field atomic) runs in one transaction

Restore is destructive: products, sales, purchases and purchase_returns are
replaced by the snapshot.
"""

from io import BytesIO

from flask import Blueprint, current_app, g, jsonify, request, send_file

from ..decorators import require_auth, require_permission
from ..errors import BackupParseError, StockroomError
from ..services import backup_service, permission_service

backup_bp = Blueprint("backup", __name__, url_prefix="/api/backup")

TRUE_VALUES = {"1", "true", "yes", "on"}


def _atomic_flag() -> bool | None:
    raw = request.args.get("atomic") or request.form.get("atomic")
    if raw is None:
        return None
    return raw.strip().lower() in TRUE_VALUES


def _uploaded_bytes() -> bytes:
    upload = request.files.get("file")
    if upload is not None:
        return upload.read()
    data = request.get_data(cache=False)
    if not data:
        raise BackupParseError("No backup file uploaded")
    return data


@backup_bp.get("")
@require_auth
@require_permission("backup")
def download_backup_route():
    try:
        document = backup_service.create_backup()
        body = backup_service.dump_backup(document).encode("utf-8")
        return send_file(
            BytesIO(body),
            mimetype="application/json",
            as_attachment=True,
            download_name=backup_service.backup_filename(document["exported_at"]),
        )
    except Exception:
        current_app.logger.exception("Failed to create backup")
        return jsonify({"error": "Failed to create backup", "kind": "internal"}), 500


@backup_bp.post("/restore")
@require_auth
@require_permission("backup")
def restore_backup_route():
    """
    Responses:
        200 {"restored": {table: count}, "atomic": bool, "exported_at": ...}
        400 malformed_backup (nothing changed)
        409 busy (another restore is running)
        500 restore_failed with failed_table / completed_tables
    """
    try:
        result = backup_service.restore_from_backup(_uploaded_bytes(), atomic=_atomic_flag())
        permission_service.log_security_event(
            user_id=g.current_user.id,
            event_type="BACKUP_RESTORED",
            success=True,
            resource=request.path,
            action="POST",
            reason=", ".join(f"{name}={count}" for name, count in result["restored"].items()),
            ip_address=request.remote_addr,
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify(result), 200

    except StockroomError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to restore backup")
        return jsonify({"error": "Internal server error", "kind": "internal"}), 500
