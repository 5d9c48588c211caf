"""
Core utilities shared across the task tracker.

This package hosts:
- configuration helpers (env vars, data/backup/lock paths, lock tuning)
- the error kinds surfaced by repositories and services
- cross-cutting helpers such as logging setup and content checksums

Repositories, services and routers depend on these primitives instead of
reading the environment or hashing files on their own.
"""
