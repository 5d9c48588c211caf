#!/usr/bin/env python3
"""
Restaurar o tasks.json a partir de um backup verificado (checksum + schema).

Uso:
  python scripts/restore_data.py                       # backup valido mais recente
  python scripts/restore_data.py --name tasks-....json # backup especifico
"""
from __future__ import annotations

import argparse
import sys

from tasktracker.core.config import get_settings
from tasktracker.core.logging_config import configure_logging
from tasktracker.repositories.json_storage import DocumentStore


def main() -> None:
    ap = argparse.ArgumentParser(description="Restaurar tasks.json de um backup")
    ap.add_argument("--name", help="Nome do arquivo de backup (default: o valido mais recente)")
    args = ap.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)
    store = DocumentStore.from_settings(settings)

    with store.lock:
        if args.name:
            restored = store.backups.restore_named_backup(args.name.strip())
        else:
            restored = store.backups.restore_from_backup()
    if restored is None:
        raise SystemExit("Nenhum backup valido encontrado")

    print("OK: dados restaurados")
    print(f"  Backup: {restored.backup_name}")
    print(f"  Requests: {len(restored.document['requests'])}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover
        sys.stderr.write(f"Erro: {exc}\n")
        raise SystemExit(1)
