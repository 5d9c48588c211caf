from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Request

from tasktracker.core.utils import error_response, get_request_service, success_response
from tasktracker.services import query_service

router = APIRouter(prefix="/api/requests", tags=["requests"])


@router.get("")
def list_requests(
    request: Request,
    query: Optional[str] = None,
    completed: Optional[bool] = None,
    taskDone: Optional[bool] = None,
    taskApproved: Optional[bool] = None,
    sortBy: str = "requestId",
    sortOrder: str = "asc",
    page: int = 1,
    limit: int = 20,
):
    svc = get_request_service(request)
    rows = query_service.filter_requests(
        svc.list_full_requests(),
        query=query,
        completed=completed,
        task_done=taskDone,
        task_approved=taskApproved,
    )
    rows = query_service.sort_requests(rows, sortBy, sortOrder)
    result = query_service.paginate(rows, page, limit)
    return success_response(
        request,
        {"requests": query_service.request_rows(result.items), "pagination": result.pagination()},
    )


@router.post("")
def create_request(request: Request, payload: dict = Body(...)):
    svc = get_request_service(request)
    created = svc.create_request(payload)
    return success_response(request, created, "Request created successfully")


@router.get("/{request_id}")
def get_request(request_id: str, request: Request):
    svc = get_request_service(request)
    data = svc.get_request_with_stats(request_id)
    if data is None:
        return error_response("Request not found", 404)
    return success_response(request, data)


@router.put("/{request_id}")
def update_request(request_id: str, request: Request, payload: dict = Body(...)):
    svc = get_request_service(request)
    updated = svc.update_request(request_id, payload)
    return success_response(request, updated, "Request updated successfully")


@router.delete("/{request_id}")
def delete_request(request_id: str, request: Request):
    svc = get_request_service(request)
    svc.delete_request(request_id)
    return success_response(request, {"requestId": request_id}, "Request deleted successfully")
