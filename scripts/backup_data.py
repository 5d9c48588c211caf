#!/usr/bin/env python3
"""
Criar um backup manual do tasks.json (ou listar os backups existentes).

Uso:
  python scripts/backup_data.py            # cria tasks-manual-<ts>.json
  python scripts/backup_data.py --list     # lista backups, mais recente primeiro
  python scripts/backup_data.py --status   # contagem, ultimo backup e integridade
"""
from __future__ import annotations

import argparse
import json
import sys

from tasktracker.core.config import get_settings
from tasktracker.core.logging_config import configure_logging
from tasktracker.repositories.json_storage import DocumentStore


def main() -> None:
    ap = argparse.ArgumentParser(description="Backup manual do tasks.json")
    ap.add_argument("--list", action="store_true", help="Listar backups existentes")
    ap.add_argument("--status", action="store_true", help="Mostrar status dos backups em JSON")
    args = ap.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level)
    store = DocumentStore.from_settings(settings)

    if args.status:
        print(json.dumps(store.backups.get_backup_status(), indent=2))
        return
    if args.list:
        entries = store.backups.list_backups()
        if not entries:
            print("Nenhum backup encontrado")
        for entry in entries:
            print(f"{entry.name}\t{entry.kind}")
        return

    path = store.backups.create_manual_backup()
    print("OK: backup criado")
    print(f"  Arquivo: {path}")


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # pragma: no cover - uso CLI
        sys.stderr.write(f"Erro: {exc}\n")
        raise SystemExit(1)
