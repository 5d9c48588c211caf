"""
Utility helpers shared across routers.
"""

from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from tasktracker.core.errors import TaskStoreError, ValidationFailedError

RECOVERED_HEADER = "X-Data-Recovered"


def get_request_service(request: Request):
    svc = getattr(getattr(request.app, "state", None), "request_service", None)
    if not svc:
        raise RuntimeError("RequestService nao configurado")
    # worker threads are reused; a notice from an earlier request must not leak
    svc.store.last_recovery = None
    return svc


def success_response(request: Request, data: Any, message: Optional[str] = None) -> JSONResponse:
    """
    Standard ``{"success": true, "data": ...}`` envelope.

    When the last load had to be restored from a backup the response carries
    the backup name in ``X-Data-Recovered`` so clients can warn the operator.
    """
    body: dict = {"success": True, "data": data}
    if message:
        body["message"] = message
    response = JSONResponse(body)
    svc = getattr(request.app.state, "request_service", None)
    store = getattr(svc, "store", None)
    notice = getattr(store, "last_recovery", None)
    if notice is not None:
        response.headers[RECOVERED_HEADER] = notice.backup_name
    return response


def error_response(message: str, status_code: int = 500, validation: Optional[list] = None) -> JSONResponse:
    body: dict = {"success": False, "error": message}
    if validation:
        body["validation"] = validation
    return JSONResponse(body, status_code=status_code)


def store_error_response(exc: TaskStoreError) -> JSONResponse:
    validation = exc.errors if isinstance(exc, ValidationFailedError) else None
    return error_response(exc.message, exc.status_code, validation)
