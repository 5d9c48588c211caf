#!/usr/bin/env python3
"""
Conferir o tasks.json contra o checksum gravado em tasks.json.checksum.

Uso:
  python scripts/verify_data.py
Sai com codigo 1 quando o arquivo nao confere.
"""
from __future__ import annotations

import sys

from tasktracker.core.config import get_settings
from tasktracker.core.logging_config import configure_logging
from tasktracker.repositories.json_storage import DocumentStore


def main() -> int:
    settings = get_settings()
    configure_logging(settings.log_level)
    store = DocumentStore.from_settings(settings)
    if store.verify_data_integrity():
        print(f"OK: {settings.data_file} confere com o checksum")
        return 0
    print(f"FALHA: {settings.data_file} nao confere com o checksum (ou arquivo ausente)")
    return 1


if __name__ == "__main__":
    try:
        raise SystemExit(main())
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Erro: {exc}\n")
        raise SystemExit(1)
