"""
Timestamped, checksummed snapshots of the JSON document.

Each snapshot is its own file inside the backup directory::

    tasks-2024-05-01T12-30-00-123456Z.json          (automatic, before every save)
    tasks-manual-2024-05-01T12-31-00-000000Z.json   (on demand)

and holds ``{timestamp, checksum, type?, data}``. The timestamp embedded in
the name sorts lexicographically in chronological order.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from tasktracker.core.checksum import checksum, serialize_document
from tasktracker.core.errors import NotFoundError, TaskStoreError
from tasktracker.domain.models import TasksDocument
from tasktracker.domain.validation import validate
from tasktracker.repositories.files import read_text, replace_with_checksum, verify_sidecar, write_text

logger = logging.getLogger(__name__)

DEFAULT_MAX_BACKUPS = 10
AUTO_PREFIX = "tasks-"
MANUAL_PREFIX = "tasks-manual-"
BACKUP_NAME_PATTERN = re.compile(r"^tasks-(?P<manual>manual-)?(?P<stamp>\d{4}-\d{2}-\d{2}T\d{2}-\d{2}-\d{2}-\d{6}Z)\.json$")

KIND_AUTO = "auto"
KIND_MANUAL = "manual"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def file_stamp(moment: datetime) -> str:
    """ISO-8601 UTC instant with ':' and '.' replaced, safe for file names."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")


@dataclass(frozen=True)
class BackupEntry:
    name: str
    path: Path
    stamp: str
    kind: str


@dataclass(frozen=True)
class RestoredBackup:
    document: dict
    backup_name: str


class BackupManager:
    """Creates, prunes and restores snapshots of ``data_file``."""

    def __init__(
        self,
        data_file: Path,
        backup_dir: Path,
        *,
        max_backups: int = DEFAULT_MAX_BACKUPS,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.data_file = Path(data_file)
        self.backup_dir = Path(backup_dir)
        self.max_backups = max_backups
        self._now = now
        self.last_error: Optional[str] = None

    # -------------------------- listing --------------------------
    def list_backups(self) -> list[BackupEntry]:
        """All snapshots, newest first by embedded timestamp."""
        if not self.backup_dir.is_dir():
            return []
        entries = []
        for path in self.backup_dir.iterdir():
            match = BACKUP_NAME_PATTERN.match(path.name)
            if not match or not path.is_file():
                continue
            kind = KIND_MANUAL if match.group("manual") else KIND_AUTO
            entries.append(BackupEntry(path.name, path, match.group("stamp"), kind))
        entries.sort(key=lambda entry: (entry.stamp, entry.name), reverse=True)
        return entries

    # -------------------------- snapshots --------------------------
    def create_backup(self) -> Optional[Path]:
        """
        Snapshot the live file before it gets replaced.

        Best effort: a failure is logged and remembered in ``last_error`` but
        never raised, so it cannot block the write that follows.
        """
        try:
            if not self.data_file.exists():
                return None
            path = self._write_snapshot(AUTO_PREFIX, manual=False)
            self.cleanup_old_backups()
        except Exception as exc:
            self.last_error = f"{type(exc).__name__}: {exc}"
            logger.warning("Failed to create backup of %s: %s", self.data_file, exc)
            return None
        self.last_error = None
        logger.info("Backup created: %s", path.name)
        return path

    def create_manual_backup(self) -> Path:
        """On-demand snapshot tagged ``type: manual``; returns its path."""
        if not self.data_file.exists():
            raise NotFoundError(f"No {self.data_file.name} file to back up")
        try:
            path = self._write_snapshot(MANUAL_PREFIX, manual=True)
        except (OSError, ValueError) as exc:
            raise TaskStoreError(f"Failed to create manual backup: {exc}") from exc
        self.cleanup_old_backups()
        logger.info("Manual backup created: %s", path.name)
        return path

    def cleanup_old_backups(self) -> list[Path]:
        """Keep the newest ``max_backups`` snapshots, automatic and manual alike."""
        removed = []
        try:
            for entry in self.list_backups()[self.max_backups:]:
                entry.path.unlink()
                removed.append(entry.path)
        except OSError as exc:
            logger.warning("Failed to clean up old backups in %s: %s", self.backup_dir, exc)
        if removed:
            logger.debug("Pruned %d old backup(s)", len(removed))
        return removed

    def _write_snapshot(self, prefix: str, *, manual: bool) -> Path:
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        data = json.loads(read_text(self.data_file))
        moment = self._now()
        path = self.backup_dir / f"{prefix}{file_stamp(moment)}.json"
        while path.exists():
            moment += timedelta(microseconds=1)
            path = self.backup_dir / f"{prefix}{file_stamp(moment)}.json"
        record = {
            "timestamp": moment.astimezone(timezone.utc).isoformat(),
            "checksum": checksum(serialize_document(data)),
        }
        if manual:
            record["type"] = KIND_MANUAL
        record["data"] = data
        write_text(path, serialize_document(record))
        return path

    # -------------------------- restore --------------------------
    def restore_from_backup(self) -> Optional[RestoredBackup]:
        """
        Put the newest verifiable snapshot back in place of the live file.

        Candidates are tried newest first; one qualifies when the checksum of
        its embedded data matches the stored checksum and the data passes the
        document schema. Returns None when nothing qualifies.
        """
        for entry in self.list_backups():
            document = self._verified_payload(entry)
            if document is None:
                continue
            try:
                replace_with_checksum(self.data_file, serialize_document(document))
            except OSError as exc:
                logger.error("Failed to restore from backup %s: %s", entry.name, exc)
                continue
            logger.warning("Restored %s from backup %s", self.data_file.name, entry.name)
            return RestoredBackup(document, entry.name)
        logger.error("No valid backup available in %s", self.backup_dir)
        return None

    def restore_named_backup(self, name: str) -> RestoredBackup:
        """Operator restore of one specific snapshot, with the same checks."""
        entry = next((item for item in self.list_backups() if item.name == name), None)
        if entry is None:
            raise NotFoundError(f"Backup {name} not found")
        document = self._verified_payload(entry)
        if document is None:
            raise TaskStoreError(f"Backup {name} failed checksum or schema verification", "invalid_backup", 400)
        replace_with_checksum(self.data_file, serialize_document(document))
        logger.warning("Restored %s from backup %s", self.data_file.name, entry.name)
        return RestoredBackup(document, entry.name)

    def _verified_payload(self, entry: BackupEntry) -> Optional[dict]:
        try:
            record = json.loads(read_text(entry.path))
        except (OSError, ValueError) as exc:
            logger.warning("Skipping unreadable backup %s: %s", entry.name, exc)
            return None
        if not isinstance(record, dict) or "data" not in record or not record.get("checksum"):
            logger.warning("Skipping malformed backup %s", entry.name)
            return None
        if checksum(serialize_document(record["data"])) != record["checksum"]:
            logger.warning("Skipping backup %s: checksum mismatch", entry.name)
            return None
        try:
            return validate(TasksDocument, record["data"])
        except TaskStoreError as exc:
            logger.warning("Skipping backup %s: %s", entry.name, exc)
            return None

    # -------------------------- status --------------------------
    def get_backup_status(self) -> dict:
        entries = self.list_backups()
        return {
            "totalBackups": len(entries),
            "latestBackup": entries[0].name if entries else None,
            "backupDirectory": str(self.backup_dir),
            "integrityCheck": verify_sidecar(self.data_file),
            "lastBackupError": self.last_error,
        }
