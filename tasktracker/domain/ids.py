"""Domain helpers for request/task identifiers."""
from __future__ import annotations

from typing import Iterable

REQUEST_ID_PREFIX = "req"
TASK_ID_PREFIX = "task"


def next_id(prefix: str, existing: Iterable[str]) -> str:
    """Return the lowest free ``<prefix>-N`` (N >= 1); freed numbers are reused."""
    taken = set(existing)
    counter = 1
    while f"{prefix}-{counter}" in taken:
        counter += 1
    return f"{prefix}-{counter}"
