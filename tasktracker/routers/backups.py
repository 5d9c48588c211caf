from __future__ import annotations

from fastapi import APIRouter, Request

from tasktracker.core.utils import get_request_service, success_response

router = APIRouter(prefix="/api/backups", tags=["backups"])


@router.get("")
def backup_status(request: Request):
    svc = get_request_service(request)
    return success_response(request, svc.get_backup_status())


@router.post("")
def create_backup(request: Request):
    svc = get_request_service(request)
    path = svc.create_manual_backup()
    return success_response(request, {"backupPath": path}, "Backup created successfully")


@router.get("/integrity")
def integrity(request: Request):
    svc = get_request_service(request)
    return success_response(request, {"integrityCheck": svc.verify_data_integrity()})
