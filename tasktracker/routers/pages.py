from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from tasktracker.core.utils import get_request_service
from tasktracker.domain.stats import has_details, request_with_stats
from tasktracker.services import query_service

router = APIRouter(prefix="", tags=["pages"])


def _templates(request: Request):
    tpl = getattr(getattr(request.app, "state", None), "templates", None)
    if tpl:
        return tpl
    raise RuntimeError("Templates nao configurados")


def _not_found(message: str) -> HTMLResponse:
    return HTMLResponse(f"<h1>{message}</h1>", status_code=404)


@router.get("/")
def index():
    return RedirectResponse("/requests", status_code=302)


@router.get("/requests", response_class=HTMLResponse)
def requests_page(
    request: Request,
    query: str = "",
    completed: Optional[bool] = None,
    page: int = 1,
    limit: int = 20,
):
    svc = get_request_service(request)
    rows = query_service.filter_requests(svc.list_full_requests(), query=query or None, completed=completed)
    result = query_service.paginate(query_service.sort_requests(rows), page, limit)
    store = svc.store
    context = {
        "requests": query_service.request_rows(result.items),
        "pagination": result.pagination(),
        "query": query,
        "recovered_from": store.last_recovery.backup_name if store.last_recovery else "",
    }
    return _templates(request).TemplateResponse(request, "requests.html", context)


@router.get("/requests/{request_id}", response_class=HTMLResponse)
def request_page(request_id: str, request: Request):
    svc = get_request_service(request)
    data = svc.get_request(request_id)
    if data is None:
        return _not_found("Request not found")
    tasks = [{**task, "hasDetails": has_details(task)} for task in data["tasks"]]
    context = {"req": request_with_stats(data), "tasks": tasks}
    return _templates(request).TemplateResponse(request, "request_detail.html", context)


@router.get("/requests/{request_id}/tasks/{task_id}", response_class=HTMLResponse)
def task_page(request_id: str, task_id: str, request: Request):
    svc = get_request_service(request)
    task = svc.get_task(request_id, task_id)
    if task is None:
        return _not_found("Task not found")
    context = {"request_id": request_id, "task": task}
    return _templates(request).TemplateResponse(request, "task_detail.html", context)


# Silencia requisições de debug do Chrome (evita 404 ruidoso em logs)
@router.get("/.well-known/appspecific/com.chrome.devtools.json")
def chrome_devtools_wellknown():
    return PlainTextResponse("", status_code=204)
