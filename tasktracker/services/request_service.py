"""Request/task use cases on top of the JSON document store."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from tasktracker.core.errors import NotFoundError
from tasktracker.domain import stats
from tasktracker.domain.ids import REQUEST_ID_PREFIX, TASK_ID_PREFIX, next_id
from tasktracker.domain.models import (
    Request,
    RequestCreate,
    RequestUpdate,
    Task,
    TaskCreate,
    TaskUpdate,
)
from tasktracker.domain.validation import validate
from tasktracker.repositories.json_storage import DocumentStore

logger = logging.getLogger(__name__)


def _find_request(document: dict, request_id: str) -> Optional[dict]:
    return next((req for req in document["requests"] if req["requestId"] == request_id), None)


def _find_task(request: dict, task_id: str) -> Optional[dict]:
    return next((task for task in request["tasks"] if task["id"] == task_id), None)


class RequestService:
    """
    CRUD over requests and their tasks.

    Every call re-loads the full document, changes it in memory and hands the
    whole document back to the store. The store's errors pass through
    unchanged; only NotFoundError is raised here.
    """

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    # -------------------------- requests --------------------------
    def list_full_requests(self) -> list[dict]:
        return self.store.load()["requests"]

    def list_request_summaries(self) -> list[dict]:
        return [stats.request_summary(req) for req in self.list_full_requests()]

    def get_request(self, request_id: str) -> Optional[dict]:
        return _find_request(self.store.load(), request_id)

    def get_request_with_stats(self, request_id: str) -> Optional[dict]:
        request = self.get_request(request_id)
        return stats.request_with_stats(request) if request else None

    def create_request(self, fields: Mapping[str, Any]) -> dict:
        values = validate(RequestCreate, fields)
        document = self.store.load()
        request = {
            "requestId": next_id(REQUEST_ID_PREFIX, (req["requestId"] for req in document["requests"])),
            "originalRequest": values["originalRequest"],
            "splitDetails": values["splitDetails"],
            "tasks": [],
            "completed": values["completed"],
        }
        request = validate(Request, request)
        document["requests"].append(request)
        self.store.persist(document)
        logger.info("Request %s created", request["requestId"])
        return request

    def update_request(self, request_id: str, fields: Mapping[str, Any]) -> dict:
        changes = validate(RequestUpdate, fields, partial=True)
        document = self.store.load()
        current = _find_request(document, request_id)
        if current is None:
            raise NotFoundError("Request not found")
        merged = validate(Request, {**current, **changes})
        document["requests"][document["requests"].index(current)] = merged
        self.store.persist(document)
        return merged

    def delete_request(self, request_id: str) -> None:
        document = self.store.load()
        current = _find_request(document, request_id)
        if current is None:
            raise NotFoundError("Request not found")
        document["requests"].remove(current)
        self.store.persist(document)
        logger.info("Request %s deleted with %d task(s)", request_id, len(current["tasks"]))

    # -------------------------- tasks --------------------------
    def list_tasks(self, request_id: str) -> Optional[dict]:
        request = self.get_request(request_id)
        if request is None:
            return None
        tasks = [{**task, "hasDetails": stats.has_details(task)} for task in request["tasks"]]
        counts = stats.task_counts(request)
        return {
            "requestId": request_id,
            "tasks": tasks,
            "totalTasks": counts["totalTasks"],
            "completedTasks": counts["completedTasks"],
            "approvedTasks": counts["approvedTasks"],
        }

    def list_all_tasks(self) -> list[dict]:
        """Every task flattened with its parent request context."""
        return [
            {
                **task,
                "requestId": req["requestId"],
                "requestTitle": req["originalRequest"],
                "hasDetails": stats.has_details(task),
            }
            for req in self.list_full_requests()
            for task in req["tasks"]
        ]

    def get_task(self, request_id: str, task_id: str) -> Optional[dict]:
        request = self.get_request(request_id)
        if request is None:
            return None
        return _find_task(request, task_id)

    def create_task(self, request_id: str, fields: Mapping[str, Any]) -> dict:
        values = validate(TaskCreate, fields)
        document = self.store.load()
        request = _find_request(document, request_id)
        if request is None:
            raise NotFoundError("Request not found")
        task = validate(
            Task,
            {"id": next_id(TASK_ID_PREFIX, (task["id"] for task in request["tasks"])), **values},
        )
        request["tasks"].append(task)
        self.store.persist(document)
        logger.info("Task %s created in %s", task["id"], request_id)
        return task

    def update_task(self, request_id: str, task_id: str, fields: Mapping[str, Any]) -> dict:
        changes = validate(TaskUpdate, fields, partial=True)
        document = self.store.load()
        request = _find_request(document, request_id)
        if request is None:
            raise NotFoundError("Request not found")
        current = _find_task(request, task_id)
        if current is None:
            raise NotFoundError("Task not found")
        merged = validate(Task, {**current, **changes})
        request["tasks"][request["tasks"].index(current)] = merged
        self.store.persist(document)
        return merged

    def delete_task(self, request_id: str, task_id: str) -> None:
        document = self.store.load()
        request = _find_request(document, request_id)
        if request is None:
            raise NotFoundError("Request not found")
        current = _find_task(request, task_id)
        if current is None:
            raise NotFoundError("Task not found")
        request["tasks"].remove(current)
        self.store.persist(document)

    # -------------------------- maintenance --------------------------
    def get_overall_stats(self) -> dict:
        return stats.overall_stats(self.list_full_requests())

    def get_backup_status(self) -> dict:
        return self.store.backups.get_backup_status()

    def create_manual_backup(self) -> str:
        return str(self.store.backups.create_manual_backup())

    def verify_data_integrity(self) -> bool:
        return self.store.verify_data_integrity()
