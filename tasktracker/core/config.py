"""
Configuration helpers for the task tracker backend.

Routers/services/repositories read paths, lock tuning and logging options
from the Settings object instead of fetching os.environ directly.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
import os


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    data_file: Path
    backup_dir: Path
    lock_file: Path
    max_backups: int
    lock_timeout_seconds: float
    lock_stale_seconds: float
    lock_retry_seconds: float
    log_level: str
    cors_origins: tuple[str, ...]


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str, default: int = 0) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _float(value: str, default: float = 0.0) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def _path(value: str | None, default: str) -> Path:
        return Path(value or default).expanduser().resolve()

    origins = tuple(
        origin.strip().rstrip("/")
        for origin in (os.getenv("CORS_ORIGINS") or "").split(",")
        if origin.strip()
    )

    return Settings(
        app_env=(os.getenv("APP_ENV") or "dev").lower(),
        data_file=_path(os.getenv("TASKS_DATA_FILE"), "tasks.json"),
        backup_dir=_path(os.getenv("TASKS_BACKUP_DIR"), ".backups"),
        lock_file=_path(os.getenv("TASKS_LOCK_FILE"), ".tasks.lock"),
        max_backups=max(1, _int(os.getenv("TASKS_MAX_BACKUPS", "10"), 10)),
        lock_timeout_seconds=_float(os.getenv("TASKS_LOCK_TIMEOUT_SECONDS", "30"), 30.0),
        lock_stale_seconds=_float(os.getenv("TASKS_LOCK_STALE_SECONDS", "30"), 30.0),
        lock_retry_seconds=_float(os.getenv("TASKS_LOCK_RETRY_SECONDS", "0.1"), 0.1),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        cors_origins=origins,
    )
