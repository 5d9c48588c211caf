"""Derived counters and percentages. Computed on read, never stored."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Sequence


def percentage(part: int, total: int) -> int:
    """Share of ``part`` in ``total`` rounded half-up; 0 when ``total`` is 0."""
    if total <= 0:
        return 0
    return int((Decimal(part) * 100 / Decimal(total)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def task_counts(request: Mapping[str, Any]) -> dict:
    tasks = request.get("tasks") or []
    total = len(tasks)
    completed = sum(1 for task in tasks if task.get("done"))
    approved = sum(1 for task in tasks if task.get("approved"))
    return {
        "totalTasks": total,
        "completedTasks": completed,
        "approvedTasks": approved,
        "completionPercentage": percentage(completed, total),
        "approvalPercentage": percentage(approved, total),
    }


def request_summary(request: Mapping[str, Any]) -> dict:
    """Compact listing row for a request."""
    summary = {
        "requestId": request["requestId"],
        "originalRequest": request["originalRequest"],
    }
    summary.update(task_counts(request))
    summary["completed"] = bool(request.get("completed"))
    return summary


def request_with_stats(request: Mapping[str, Any]) -> dict:
    data = dict(request)
    data.update(task_counts(request))
    return data


def has_details(task: Mapping[str, Any]) -> bool:
    return bool((task.get("completedDetails") or "").strip())


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


def overall_stats(requests: Sequence[Mapping[str, Any]], *, now: datetime | None = None) -> dict:
    """Dashboard numbers across every request and task."""
    total_requests = len(requests)
    completed_requests = sum(1 for req in requests if req.get("completed"))
    all_tasks = [(req, task) for req in requests for task in req.get("tasks") or []]
    total_tasks = len(all_tasks)
    completed_tasks = sum(1 for _, task in all_tasks if task.get("done"))
    approved_tasks = sum(1 for _, task in all_tasks if task.get("approved"))

    by_completion = []
    for req in requests:
        counts = task_counts(req)
        by_completion.append(
            {
                "requestId": req["requestId"],
                "title": _truncate(req["originalRequest"], 100),
                "totalTasks": counts["totalTasks"],
                "completedTasks": counts["completedTasks"],
                "completionPercentage": counts["completionPercentage"],
                "completed": bool(req.get("completed")),
            }
        )
    by_completion.sort(key=lambda row: row["completionPercentage"], reverse=True)

    recent = [
        {
            "taskId": task["id"],
            "taskTitle": task["title"],
            "requestId": req["requestId"],
            "requestTitle": _truncate(req["originalRequest"], 50),
            "approved": bool(task.get("approved")),
            "completedDetails": _truncate(task["completedDetails"], 200),
        }
        for req, task in all_tasks
        if task.get("done") and has_details(task)
    ][:20]

    return {
        "overview": {
            "totalRequests": total_requests,
            "completedRequests": completed_requests,
            "pendingRequests": total_requests - completed_requests,
            "requestCompletionRate": percentage(completed_requests, total_requests),
            "totalTasks": total_tasks,
            "completedTasks": completed_tasks,
            "approvedTasks": approved_tasks,
            "pendingTasks": total_tasks - completed_tasks,
            "tasksAwaitingApproval": sum(
                1 for _, task in all_tasks if task.get("done") and not task.get("approved")
            ),
            "tasksInProgress": total_tasks - completed_tasks,
            "taskCompletionRate": percentage(completed_tasks, total_tasks),
            "taskApprovalRate": percentage(approved_tasks, total_tasks),
        },
        "requestsByCompletion": by_completion,
        "topPerformers": by_completion[:10],
        "recentActivity": recent,
        "timestamp": (now or datetime.now(timezone.utc)).isoformat(),
    }
