"""
Advisory lock file guarding writes to the JSON document.

The lock is a plain file created with O_CREAT | O_EXCL; whoever manages to
create it owns the critical section. The holder writes ``{pid, host,
timestamp}`` into it so competitors can detect a lock left behind by a
crashed process and break it.

Cooperative only: processes that do not go through FileLock are not stopped.
"""
from __future__ import annotations

import json
import logging
import os
import socket
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from tasktracker.core.errors import LockConflictError, StorageInternalError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_STALE_SECONDS = 30.0
DEFAULT_RETRY_SECONDS = 0.1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FileLock:
    """
    Exclusive lock backed by a lock file.

    Usage::

        lock = FileLock(Path(".tasks.lock"))
        with lock:
            ...  # read-modify-write

    ``clock``/``sleep``/``now`` can be replaced in tests to drive the retry
    loop without real waiting.

    One instance is shared by every thread of the process: threads queue on
    an in-process lock that stays taken from acquire() to release(), and only
    the winner goes on to compete for the lock file.
    """

    def __init__(
        self,
        path: Path,
        *,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        stale_after: float = DEFAULT_STALE_SECONDS,
        retry_interval: float = DEFAULT_RETRY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.path = Path(path)
        self.timeout = timeout
        self.stale_after = stale_after
        self.retry_interval = retry_interval
        self._clock = clock
        self._sleep = sleep
        self._now = now
        self._fd: Optional[int] = None
        self._held = False
        self._thread_lock = threading.Lock()

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Block until the lock is ours or raise LockConflictError at the deadline."""
        deadline = self._clock() + self.timeout
        if not self._thread_lock.acquire(timeout=max(self.timeout, 0)):
            logger.warning("Timed out waiting for lock %s held by another thread", self.path)
            raise LockConflictError("Timeout waiting for file lock")
        try:
            self._acquire_file(deadline)
        except BaseException:
            self._thread_lock.release()
            raise

    def _acquire_file(self, deadline: float) -> None:
        attempts = 0
        while True:
            attempts += 1
            if self._try_create():
                logger.debug("Lock %s acquired after %d attempt(s)", self.path, attempts)
                return
            if self._break_if_stale():
                continue
            if self._clock() >= deadline:
                logger.warning("Timed out waiting for lock %s after %.1fs", self.path, self.timeout)
                raise LockConflictError("Timeout waiting for file lock")
            logger.debug("Lock %s busy, retrying in %.3fs", self.path, self.retry_interval)
            self._sleep(self.retry_interval)

    def release(self) -> None:
        """Close and remove the lock file. Never raises; no-op when not held."""
        if not self._held:
            return
        try:
            self._drop_file()
        finally:
            self._thread_lock.release()

    def _drop_file(self) -> None:
        try:
            if self._fd is not None:
                os.close(self._fd)
            self.path.unlink()
        except OSError as exc:
            logger.error("Error releasing lock %s: %s", self.path, exc)
        finally:
            self._fd = None
            self._held = False

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    def holder_info(self) -> dict:
        return {
            "pid": os.getpid(),
            "host": socket.gethostname(),
            "timestamp": self._now().isoformat(),
        }

    def _try_create(self) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(str(self.path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        except OSError as exc:
            raise StorageInternalError(f"Failed to acquire file lock: {exc}") from exc
        self._fd = fd
        self._held = True
        try:
            os.write(fd, json.dumps(self.holder_info(), indent=2).encode("utf-8"))
        except OSError as exc:
            self._drop_file()
            raise StorageInternalError(f"Failed to write lock metadata: {exc}") from exc
        return True

    def _break_if_stale(self) -> bool:
        """Remove an abandoned or unreadable lock file. True means retry right away."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            # liberado entre a tentativa e a leitura
            return True
        except OSError:
            raw = ""
        if not raw.strip() and self._created_recently():
            # holder criou o arquivo e ainda nao gravou os metadados
            return False
        reason = None
        try:
            info = json.loads(raw)
            acquired_at = datetime.fromisoformat(info["timestamp"])
            if acquired_at.tzinfo is None:
                acquired_at = acquired_at.replace(tzinfo=timezone.utc)
        except (ValueError, KeyError, TypeError):
            reason = "invalid metadata"
        else:
            age = (self._now() - acquired_at).total_seconds()
            if age > self.stale_after:
                reason = f"stale for {age:.1f}s (pid={info.get('pid')}, host={info.get('host')})"
        if reason is None:
            return False
        logger.warning("Removing lock %s: %s", self.path, reason)
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.error("Failed to remove stale lock %s: %s", self.path, exc)
            return False
        return True

    def _created_recently(self) -> bool:
        try:
            mtime = self.path.stat().st_mtime
        except OSError:
            return False
        return (self._now().timestamp() - mtime) <= self.stale_after
