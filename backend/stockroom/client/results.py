# Overview: Typed outcome of client mutations.

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Error kinds reported by the API, plus the client-side ones."""

    INVALID = "invalid"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    IN_USE = "in_use"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    MALFORMED_BACKUP = "malformed_backup"
    BUSY = "busy"
    RESTORE_FAILED = "restore_failed"
    PROVISIONING_FAILED = "provisioning_failed"
    INTERNAL = "internal"
    # Transport failures: connection refused, timeouts, non-JSON bodies
    NETWORK = "network"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: str | None) -> "ErrorKind":
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class MutationResult:
    ok: bool
    data: Any = None
    error_kind: ErrorKind | None = None
    message: str | None = None

    @classmethod
    def success(cls, data: Any = None) -> "MutationResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, data: Any = None) -> "MutationResult":
        return cls(ok=False, data=data, error_kind=kind, message=message)

    def __bool__(self) -> bool:
        return self.ok
