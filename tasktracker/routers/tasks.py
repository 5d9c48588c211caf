from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Request

from tasktracker.core.utils import error_response, get_request_service, success_response
from tasktracker.domain.stats import has_details
from tasktracker.services import query_service

router = APIRouter(prefix="/api", tags=["tasks"])


@router.get("/requests/{request_id}/tasks")
def list_request_tasks(request_id: str, request: Request):
    svc = get_request_service(request)
    data = svc.list_tasks(request_id)
    if data is None:
        return error_response("Request not found", 404)
    return success_response(request, data)


@router.post("/requests/{request_id}/tasks")
def create_request_task(request_id: str, request: Request, payload: dict = Body(...)):
    svc = get_request_service(request)
    task = svc.create_task(request_id, payload)
    return success_response(request, task, "Task created successfully")


@router.get("/requests/{request_id}/tasks/{task_id}")
def get_task(request_id: str, task_id: str, request: Request):
    svc = get_request_service(request)
    task = svc.get_task(request_id, task_id)
    if task is None:
        return error_response("Task not found", 404)
    return success_response(request, {**task, "hasDetails": has_details(task)})


@router.put("/requests/{request_id}/tasks/{task_id}")
def update_task(request_id: str, task_id: str, request: Request, payload: dict = Body(...)):
    svc = get_request_service(request)
    task = svc.update_task(request_id, task_id, payload)
    return success_response(request, task, "Task updated successfully")


@router.delete("/requests/{request_id}/tasks/{task_id}")
def delete_task(request_id: str, task_id: str, request: Request):
    svc = get_request_service(request)
    svc.delete_task(request_id, task_id)
    return success_response(request, {"requestId": request_id, "taskId": task_id}, "Task deleted successfully")


@router.get("/tasks")
def list_tasks(
    request: Request,
    query: Optional[str] = None,
    done: Optional[bool] = None,
    approved: Optional[bool] = None,
    requestId: Optional[str] = None,
    sortBy: str = "id",
    sortOrder: str = "asc",
    page: int = 1,
    limit: int = 50,
):
    svc = get_request_service(request)
    rows = query_service.filter_tasks(
        svc.list_all_tasks(), query=query, done=done, approved=approved, request_id=requestId
    )
    rows = query_service.sort_tasks(rows, sortBy, sortOrder)
    result = query_service.paginate(rows, page, limit)
    return success_response(
        request,
        {
            "tasks": result.items,
            "pagination": result.pagination(),
            "summary": query_service.task_totals(rows),
        },
    )


@router.post("/tasks")
def create_task(request: Request, payload: dict = Body(...)):
    request_id = str(payload.get("requestId") or "").strip()
    if not request_id:
        return error_response("Request ID is required", 400)
    svc = get_request_service(request)
    task = svc.create_task(request_id, payload)
    return success_response(request, {**task, "requestId": request_id}, "Task created successfully")
