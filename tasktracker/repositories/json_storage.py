"""
JSON document persistence.

The whole state of the application is one JSON document (``{"requests": [...]}``)
on local disk. DocumentStore loads it (recovering from backups when the file
is empty, unparseable or fails the schema) and is the only code path that
writes it: lock, snapshot, validate, write temp file, verify checksum,
rename into place, rename checksum sidecar, unlock.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from tasktracker.core.checksum import checksum, serialize_document
from tasktracker.core.config import Settings
from tasktracker.core.errors import (
    DataCorruptionError,
    StorageInternalError,
    TaskStoreError,
    WriteIntegrityError,
)
from tasktracker.domain.models import TasksDocument, empty_document
from tasktracker.domain.validation import validate
from tasktracker.repositories.backups import BackupManager, RestoredBackup
from tasktracker.repositories.file_lock import FileLock
from tasktracker.repositories.files import (
    read_text,
    remove_quietly,
    sidecar_path,
    temp_path,
    verify_sidecar,
    write_text,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecoveryNotice:
    """A load only succeeded after restoring ``backup_name``."""

    reason: str
    backup_name: str


class DocumentStore:
    """Owns the live document file, its lock and its backups."""

    def __init__(self, data_file: Path, lock: FileLock, backups: BackupManager) -> None:
        self.data_file = Path(data_file)
        self.lock = lock
        self.backups = backups
        self._cache: Optional[dict] = None
        self._local = threading.local()

    @classmethod
    def from_settings(cls, settings: Settings) -> "DocumentStore":
        lock = FileLock(
            settings.lock_file,
            timeout=settings.lock_timeout_seconds,
            stale_after=settings.lock_stale_seconds,
            retry_interval=settings.lock_retry_seconds,
        )
        backups = BackupManager(settings.data_file, settings.backup_dir, max_backups=settings.max_backups)
        return cls(settings.data_file, lock, backups)

    @property
    def last_recovery(self) -> Optional[RecoveryNotice]:
        """Recovery performed by the most recent load() of the calling thread."""
        return getattr(self._local, "recovery", None)

    @last_recovery.setter
    def last_recovery(self, notice: Optional[RecoveryNotice]) -> None:
        self._local.recovery = notice

    @property
    def cached(self) -> Optional[dict]:
        """Last document seen by load/persist. Advisory only."""
        return self._cache

    # -------------------------- read --------------------------
    def load(self) -> dict:
        """Return the validated document, restoring from backup if needed."""
        self.last_recovery = None
        if not self.data_file.exists():
            logger.info("Creating %s", self.data_file)
            return self.persist(empty_document())

        try:
            content = read_text(self.data_file)
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageInternalError(f"Failed to load tasks data: {exc}") from exc

        if not content.strip():
            logger.warning("Empty %s detected, attempting backup restoration", self.data_file.name)
            return self._recover("empty file", "Empty file detected and no valid backup available")

        try:
            raw = json.loads(content)
        except ValueError as exc:
            logger.warning("JSON parse error in %s (%s), attempting backup restoration", self.data_file.name, exc)
            return self._recover("invalid format", "Invalid JSON format and no valid backup available")

        try:
            document = validate(TasksDocument, raw)
        except TaskStoreError as exc:
            logger.warning("Data validation error in %s (%s), attempting backup restoration", self.data_file.name, exc)
            return self._recover("invalid structure", "Invalid data structure and no valid backup available")

        self._cache = document
        return copy.deepcopy(document)

    def _recover(self, reason: str, fatal_message: str) -> dict:
        restored: Optional[RestoredBackup] = self.backups.restore_from_backup()
        if restored is None:
            raise DataCorruptionError(fatal_message)
        self.last_recovery = RecoveryNotice(reason, restored.backup_name)
        self._cache = restored.document
        return copy.deepcopy(restored.document)

    def verify_data_integrity(self) -> bool:
        """Does the live file still match its checksum sidecar?"""
        return verify_sidecar(self.data_file)

    # -------------------------- write --------------------------
    def persist(self, document: dict) -> dict:
        """
        Replace the live document. Only write path; callers are the services.

        Raises LockConflictError when the lock is busy past the timeout,
        ValidationFailedError for a malformed document and WriteIntegrityError
        when the temp file does not read back identically. The live file is
        untouched in all three cases.
        """
        self.lock.acquire()
        try:
            self.backups.create_backup()
            validated = validate(TasksDocument, document)
            content = serialize_document(validated)
            digest = checksum(content)
            self._write_verified(content, digest)
            self._cache = validated
            logger.info("Data saved with %d request(s)", len(validated["requests"]))
            return copy.deepcopy(validated)
        finally:
            self.lock.release()

    def _write_verified(self, content: str, digest: str) -> None:
        tmp = temp_path(self.data_file)
        tmp_sum = sidecar_path(tmp)
        try:
            write_text(tmp, content)
            write_text(tmp_sum, digest)
            if checksum(read_text(tmp)) != digest:
                raise WriteIntegrityError("Data integrity check failed after write")
            # conteudo antes do checksum: no pior caso fica um sidecar velho
            os.replace(tmp, self.data_file)
            os.replace(tmp_sum, sidecar_path(self.data_file))
        except OSError as exc:
            remove_quietly(tmp, tmp_sum)
            raise StorageInternalError(f"Failed to save tasks data: {exc}") from exc
        except BaseException:
            remove_quietly(tmp, tmp_sum)
            raise
