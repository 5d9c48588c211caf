"""Content fingerprints used to detect corrupted or truncated files."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def checksum(content: str) -> str:
    """SHA-256 hex digest of the UTF-8 encoded content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def serialize_document(data: Any) -> str:
    """
    Canonical text form of a document.

    The live file, its sidecar and the backup checksums are all computed over
    this exact form, so a backup can be re-verified from its embedded data.
    """
    return json.dumps(data, ensure_ascii=False, indent=2)
