"""Low level file helpers shared by the document store and the backups."""
from __future__ import annotations

import logging
import os
from pathlib import Path

from tasktracker.core.checksum import checksum

logger = logging.getLogger(__name__)

CHECKSUM_SUFFIX = ".checksum"
TEMP_SUFFIX = ".tmp"


def sidecar_path(path: Path) -> Path:
    return path.with_name(path.name + CHECKSUM_SUFFIX)


def temp_path(path: Path) -> Path:
    return path.with_name(path.name + TEMP_SUFFIX)


def read_text(path: Path) -> str:
    with open(path, "r", encoding="utf-8", newline="") as handle:
        return handle.read()


def write_text(path: Path, content: str) -> None:
    """Write and fsync, so a later rename publishes fully flushed bytes."""
    with open(path, "w", encoding="utf-8", newline="") as handle:
        handle.write(content)
        handle.flush()
        os.fsync(handle.fileno())


def remove_quietly(*paths: Path) -> None:
    for path in paths:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove %s: %s", path, exc)


def replace_with_checksum(path: Path, content: str) -> None:
    """Publish ``content`` and its sidecar through temp files + rename."""
    tmp = temp_path(path)
    tmp_sum = sidecar_path(tmp)
    try:
        write_text(tmp, content)
        write_text(tmp_sum, checksum(content))
        os.replace(tmp, path)
        os.replace(tmp_sum, sidecar_path(path))
    except BaseException:
        remove_quietly(tmp, tmp_sum)
        raise


def verify_sidecar(path: Path) -> bool:
    """
    Compare the live file against its stored checksum.

    Missing file or sidecar reports False. Read-only, never raises.
    """
    try:
        if not path.exists() or not sidecar_path(path).exists():
            return False
        content = read_text(path)
        stored = read_text(sidecar_path(path))
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Error verifying data integrity of %s: %s", path, exc)
        return False
    return stored.strip() == checksum(content)
