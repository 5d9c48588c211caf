"""Filtering, sorting and pagination for the list endpoints."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from tasktracker.domain import stats

REQUEST_SORT_FIELDS = ("requestId", "completion", "tasks", "originalRequest")
TASK_SORT_FIELDS = ("id", "title", "done", "approved", "requestTitle")


@dataclass
class Page:
    items: list
    page: int
    limit: int
    total: int

    def pagination(self) -> dict:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": math.ceil(self.total / self.limit) if self.limit else 0,
            "hasNext": self.page * self.limit < self.total,
            "hasPrev": self.page > 1,
        }


def paginate(items: Sequence[Any], page: int, limit: int) -> Page:
    page = max(1, page)
    limit = max(1, limit)
    start = (page - 1) * limit
    return Page(list(items[start:start + limit]), page, limit, len(items))


def _contains(term: str, *values: str) -> bool:
    return any(term in (value or "").lower() for value in values)


def _sorted(items: list, key: Callable[[Any], Any], order: str) -> list:
    return sorted(items, key=key, reverse=(order or "").lower() == "desc")


def filter_requests(
    requests: Sequence[dict],
    *,
    query: Optional[str] = None,
    completed: Optional[bool] = None,
    task_done: Optional[bool] = None,
    task_approved: Optional[bool] = None,
) -> list[dict]:
    """``task_done``/``task_approved`` keep requests having at least one matching task."""
    result = list(requests)
    if query:
        term = query.lower()
        result = [
            req for req in result
            if _contains(term, req["originalRequest"], req["splitDetails"], req["requestId"])
            or any(_contains(term, task["title"], task["description"]) for task in req["tasks"])
        ]
    if completed is not None:
        result = [req for req in result if req["completed"] == completed]
    if task_done is not None:
        result = [req for req in result if any(task["done"] == task_done for task in req["tasks"])]
    if task_approved is not None:
        result = [req for req in result if any(task["approved"] == task_approved for task in req["tasks"])]
    return result


def sort_requests(requests: list[dict], sort_by: str = "requestId", order: str = "asc") -> list[dict]:
    if sort_by == "completion":
        key = lambda req: sum(1 for t in req["tasks"] if t["done"]) / max(len(req["tasks"]), 1)
    elif sort_by == "tasks":
        key = lambda req: len(req["tasks"])
    elif sort_by == "originalRequest":
        key = lambda req: req["originalRequest"].lower()
    else:
        key = lambda req: req["requestId"]
    return _sorted(requests, key, order)


def filter_tasks(
    tasks: Sequence[dict],
    *,
    query: Optional[str] = None,
    done: Optional[bool] = None,
    approved: Optional[bool] = None,
    request_id: Optional[str] = None,
) -> list[dict]:
    result = list(tasks)
    if query:
        term = query.lower()
        result = [
            task for task in result
            if _contains(term, task["title"], task["description"], task["completedDetails"], task["requestTitle"])
        ]
    if done is not None:
        result = [task for task in result if task["done"] == done]
    if approved is not None:
        result = [task for task in result if task["approved"] == approved]
    if request_id:
        result = [task for task in result if task["requestId"] == request_id]
    return result


def sort_tasks(tasks: list[dict], sort_by: str = "id", order: str = "asc") -> list[dict]:
    if sort_by == "title":
        key = lambda task: task["title"].lower()
    elif sort_by in ("done", "approved"):
        key = lambda task: 1 if task[sort_by] else 0
    elif sort_by == "requestTitle":
        key = lambda task: task["requestTitle"].lower()
    else:
        key = lambda task: task["id"]
    return _sorted(tasks, key, order)


def request_rows(requests: Sequence[dict]) -> list[dict]:
    """Full requests decorated with their derived counters."""
    return [stats.request_with_stats(req) for req in requests]


def task_totals(tasks: Sequence[dict]) -> dict:
    return {
        "totalTasks": len(tasks),
        "completedTasks": sum(1 for task in tasks if task["done"]),
        "approvedTasks": sum(1 for task in tasks if task["approved"]),
        "pendingTasks": sum(1 for task in tasks if not task["done"]),
    }
