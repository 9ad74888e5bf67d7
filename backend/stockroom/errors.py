# Overview: Typed service errors and their HTTP translation.

"""
Service errors carry an HTTP status and a machine-readable ``kind``.

Routes catch ``StockroomError`` and return ``{"error": ..., "kind": ...}``
with the matching status. The client maps ``kind`` back onto
``stockroom.client.results.ErrorKind``.
"""

from __future__ import annotations


class StockroomError(Exception):
    status_code = 500
    kind = "internal"

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind}


class ValidationError(StockroomError, ValueError):
    """400-level input problem."""
    status_code = 400
    kind = "invalid"


class NotFoundError(StockroomError, LookupError):
    status_code = 404
    kind = "not_found"


class ConflictError(StockroomError, ValueError):
    """409-level uniqueness violation (e.g., duplicate name or SKU)."""
    status_code = 409
    kind = "already_exists"


class InUseError(StockroomError):
    """Delete refused because other rows still reference the target."""
    status_code = 409
    kind = "in_use"


class PermissionDeniedError(StockroomError):
    status_code = 403
    kind = "forbidden"


class AuthenticationError(StockroomError):
    status_code = 401
    kind = "unauthorized"


class BackupParseError(StockroomError, ValueError):
    """Uploaded backup is not JSON or lacks one of the record lists."""
    status_code = 400
    kind = "malformed_backup"


class RestoreInProgressError(StockroomError):
    status_code = 409
    kind = "busy"


class RestoreError(StockroomError):
    """
    A restore aborted midway.

    completed_tables were already replaced; failed_table may be empty
    (non-atomic mode) or untouched (atomic mode, everything rolled back).
    """
    status_code = 500
    kind = "restore_failed"

    def __init__(self, message: str, *, failed_table: str | None, completed_tables: list[str], atomic: bool):
        super().__init__(message)
        self.failed_table = failed_table
        self.completed_tables = completed_tables
        self.atomic = atomic

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            "failed_table": self.failed_table,
            "completed_tables": self.completed_tables,
            "atomic": self.atomic,
        })
        return data


class ProvisioningError(StockroomError):
    """Identity or profile creation failed while provisioning a user."""
    status_code = 400
    kind = "provisioning_failed"
