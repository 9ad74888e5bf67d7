# Overview: Client hook for downloading backups and restoring from a backup file.

from __future__ import annotations

import json
import logging
import os

from .api import ApiClient, ApiError, attachment_filename
from .results import ErrorKind, MutationResult

logger = logging.getLogger(__name__)


class BackupRestoreHook:
    """
    create_backup() saves the server snapshot as a JSON file.
    restore_from_backup() uploads a snapshot; it is destructive and the
    ``is_processing`` latch rejects a second call while one is running.
    """

    def __init__(self, api: ApiClient):
        self.api = api
        self.is_processing = False

    async def create_backup(self, directory: str | os.PathLike = ".") -> MutationResult:
        try:
            response = await self.api.send("GET", "/api/backup")
        except ApiError as e:
            logger.error("Backup failed: %s", e)
            return MutationResult.failure(e.kind, str(e))

        os.makedirs(directory, exist_ok=True)
        target = os.path.join(directory, attachment_filename(response, "inventory-backup.json"))
        with open(target, "wb") as fh:
            fh.write(response.content)

        logger.info("Backup written to %s", target)
        return MutationResult.success(target)

    async def restore_from_backup(self, file: str | os.PathLike | bytes, *, atomic: bool | None = None) -> MutationResult:
        """
        file is a path or the raw document bytes.

        The document is parsed locally first so a malformed file never reaches
        the server.
        """
        if self.is_processing:
            return MutationResult.failure(ErrorKind.BUSY, "A restore is already in progress")

        self.is_processing = True
        try:
            if isinstance(file, bytes):
                content, name = file, "backup.json"
            else:
                try:
                    with open(file, "rb") as fh:
                        content = fh.read()
                except OSError as e:
                    logger.error("Restore rejected, cannot read %s: %s", file, e)
                    return MutationResult.failure(ErrorKind.INVALID, f"Cannot read backup file: {file}")
                name = os.path.basename(os.fspath(file))

            try:
                document = json.loads(content.decode("utf-8-sig"))
            except (UnicodeDecodeError, ValueError) as e:
                logger.error("Restore rejected, backup is not valid JSON: %s", e)
                return MutationResult.failure(ErrorKind.MALFORMED_BACKUP, "Invalid backup file format")
            if not isinstance(document, dict):
                return MutationResult.failure(ErrorKind.MALFORMED_BACKUP, "Invalid backup file format")

            params = {"atomic": "true" if atomic else "false"} if atomic is not None else None
            try:
                data = await self.api.post(
                    "/api/backup/restore",
                    files={"file": (name, content, "application/json")},
                    params=params,
                )
            except ApiError as e:
                logger.error("Restore failed: %s", e)
                return MutationResult.failure(e.kind, str(e), data=e.payload or None)

            return MutationResult.success(data)
        finally:
            self.is_processing = False
