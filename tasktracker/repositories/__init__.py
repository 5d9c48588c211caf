"""
Persistence adapters.

Everything lives in one JSON document on local disk. ``json_storage`` owns the
read/validate/recover and lock/backup/atomic-write cycle; ``file_lock`` and
``backups`` are its collaborators. Services should depend on DocumentStore
rather than touching the JSON file.
"""
