"""Error kinds raised by the persistence layer and the request/task services."""

from __future__ import annotations


class TaskStoreError(Exception):
    """Base class carrying a stable error code and the HTTP status it maps to."""

    code = "internal"
    status_code = 500

    def __init__(self, message: str, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class LockConflictError(TaskStoreError):
    """Lock busy until the acquisition deadline passed. Callers may retry."""

    code = "conflict"
    status_code = 409


class NotFoundError(TaskStoreError):
    code = "not_found"
    status_code = 404


class ValidationFailedError(TaskStoreError):
    """Schema rejection; ``errors`` holds one ``{field, message}`` per problem."""

    code = "validation_failed"
    status_code = 400

    def __init__(self, message: str, errors: list[dict] | None = None):
        super().__init__(message)
        self.errors = list(errors or [])


class DataCorruptionError(TaskStoreError):
    """Live file is corrupt and no backup could be restored."""

    code = "data_corruption"
    status_code = 500


class WriteIntegrityError(TaskStoreError):
    """A fresh write did not round-trip. The live file was not touched."""

    code = "write_integrity"
    status_code = 500


class StorageInternalError(TaskStoreError):
    code = "internal"
    status_code = 500
