"""
HTTP layer smoke tests against a temporary data directory.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Garante que o pacote tasktracker seja importável durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tasktracker.app import create_app  # noqa: E402
from tasktracker.core import config as core_config  # noqa: E402
from tasktracker.core.utils import RECOVERED_HEADER  # noqa: E402


@pytest.fixture()
def client(tmp_path, monkeypatch):
    """Aponta dados/backups/lock para tmp_path e limpa o cache de settings."""
    monkeypatch.setenv("TASKS_DATA_FILE", str(tmp_path / "tasks.json"))
    monkeypatch.setenv("TASKS_BACKUP_DIR", str(tmp_path / ".backups"))
    monkeypatch.setenv("TASKS_LOCK_FILE", str(tmp_path / ".tasks.lock"))
    monkeypatch.setenv("TASKS_LOCK_TIMEOUT_SECONDS", "1")
    core_config.get_settings.cache_clear()
    with TestClient(create_app()) as test_client:
        yield test_client
    core_config.get_settings.cache_clear()


def _new_request(client, text="Build the thing", **extra) -> dict:
    response = client.post("/api/requests", json={"originalRequest": text, **extra})
    assert response.status_code == 200, response.text
    return response.json()["data"]


def _new_task(client, request_id, title="Task", **extra) -> dict:
    payload = {"title": title, "description": f"{title} description", **extra}
    response = client.post(f"/api/requests/{request_id}/tasks", json=payload)
    assert response.status_code == 200, response.text
    return response.json()["data"]


def test_request_crud_flow(client):
    created = _new_request(client, splitDetails="steps")
    assert created["requestId"] == "req-1"

    body = client.get("/api/requests/req-1").json()
    assert body["success"] is True
    assert body["data"]["totalTasks"] == 0
    assert body["data"]["completionPercentage"] == 0

    response = client.put("/api/requests/req-1", json={"completed": True})
    assert response.json()["data"]["completed"] is True
    assert response.json()["message"] == "Request updated successfully"

    response = client.delete("/api/requests/req-1")
    assert response.json()["data"] == {"requestId": "req-1"}
    assert client.get("/api/requests/req-1").status_code == 404


def test_missing_entities_return_404(client):
    _new_request(client)
    assert client.put("/api/requests/req-7", json={"completed": True}).status_code == 404
    assert client.delete("/api/requests/req-7").status_code == 404
    assert client.get("/api/requests/req-1/tasks/task-3").status_code == 404
    assert client.put("/api/requests/req-1/tasks/task-3", json={"done": True}).status_code == 404
    response = client.delete("/api/requests/req-1/tasks/task-3")
    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Task not found"}


def test_validation_errors_are_listed_per_field(client):
    response = client.post("/api/requests", json={"originalRequest": "", "completed": "nope"})
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Validation failed"
    fields = {item["field"] for item in body["validation"]}
    assert fields == {"originalRequest", "completed"}


def test_malformed_body_is_rejected(client):
    response = client.post("/api/requests", content="not json", headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid JSON in request body"


def test_task_flow_and_request_stats(client):
    request_id = _new_request(client)["requestId"]
    task_a = _new_task(client, request_id, "A")
    _new_task(client, request_id, "B")

    response = client.put(f"/api/requests/{request_id}/tasks/{task_a['id']}", json={"done": True})
    assert response.json()["data"]["done"] is True

    data = client.get(f"/api/requests/{request_id}").json()["data"]
    assert data["totalTasks"] == 2
    assert data["completedTasks"] == 1
    assert data["completionPercentage"] == 50

    listing = client.get(f"/api/requests/{request_id}/tasks").json()["data"]
    assert listing["totalTasks"] == 2
    assert [t["hasDetails"] for t in listing["tasks"]] == [False, False]

    task = client.get(f"/api/requests/{request_id}/tasks/task-1").json()["data"]
    assert task["title"] == "A"
    assert task["hasDetails"] is False


def test_list_requests_filters_sorts_and_paginates(client):
    for text in ("alpha", "beta", "gamma"):
        _new_request(client, text)
    _new_task(client, "req-2", "Needle", done=True)

    body = client.get("/api/requests", params={"sortBy": "requestId", "sortOrder": "desc", "limit": 2}).json()["data"]
    assert [r["requestId"] for r in body["requests"]] == ["req-3", "req-2"]
    assert body["pagination"] == {
        "page": 1, "limit": 2, "total": 3, "totalPages": 2, "hasNext": True, "hasPrev": False,
    }

    body = client.get("/api/requests", params={"query": "needle"}).json()["data"]
    assert [r["requestId"] for r in body["requests"]] == ["req-2"]
    assert body["requests"][0]["completionPercentage"] == 100

    body = client.get("/api/requests", params={"taskDone": "true"}).json()["data"]
    assert [r["requestId"] for r in body["requests"]] == ["req-2"]


def test_global_task_listing_and_creation(client):
    _new_request(client, "first")
    _new_request(client, "second")
    response = client.post("/api/tasks", json={"requestId": "req-2", "title": "Z", "description": "zz"})
    assert response.json()["data"]["requestId"] == "req-2"
    _new_task(client, "req-1", "A", approved=True)

    body = client.get("/api/tasks", params={"sortBy": "title"}).json()["data"]
    assert [t["title"] for t in body["tasks"]] == ["A", "Z"]
    assert body["summary"]["approvedTasks"] == 1

    body = client.get("/api/tasks", params={"requestId": "req-2"}).json()["data"]
    assert [t["requestTitle"] for t in body["tasks"]] == ["second"]

    assert client.post("/api/tasks", json={"title": "x", "description": "y"}).status_code == 400
    assert client.post("/api/tasks", json={"requestId": "req-9", "title": "x", "description": "y"}).status_code == 404


def test_stats_endpoint(client):
    _new_request(client, completed=True)
    body = client.get("/api/stats").json()["data"]
    assert body["overview"]["totalRequests"] == 1
    assert body["overview"]["requestCompletionRate"] == 100


def test_backup_endpoints(client):
    _new_request(client)

    status = client.get("/api/backups").json()["data"]
    assert status["totalBackups"] == 1
    assert status["integrityCheck"] is True

    response = client.post("/api/backups")
    assert response.status_code == 200
    assert Path(response.json()["data"]["backupPath"]).name.startswith("tasks-manual-")

    assert client.get("/api/backups/integrity").json()["data"] == {"integrityCheck": True}


def test_recovered_load_is_flagged(client, tmp_path):
    _new_request(client, "keep me")
    _new_task(client, "req-1", "A")
    (tmp_path / "tasks.json").write_text("{corrupted", encoding="utf-8")

    response = client.get("/api/requests/req-1")

    assert response.status_code == 200
    assert response.headers[RECOVERED_HEADER].startswith("tasks-")
    assert response.json()["data"]["originalRequest"] == "keep me"

    later = client.get("/api/backups")
    assert RECOVERED_HEADER not in later.headers


def test_unrecoverable_file_is_reported(client, tmp_path):
    (tmp_path / "tasks.json").write_text("", encoding="utf-8")
    response = client.get("/api/requests")
    assert response.status_code == 500
    assert response.json()["success"] is False


def test_pages_render(client):
    _new_request(client, "Visible <request>")
    _new_task(client, "req-1", "Page task")

    assert client.get("/", follow_redirects=False).status_code == 302
    listing = client.get("/requests")
    assert listing.status_code == 200
    assert "Visible &lt;request&gt;" in listing.text
    assert "Page task" in client.get("/requests/req-1").text
    assert "Page task description" in client.get("/requests/req-1/tasks/task-1").text
    assert client.get("/requests/req-9").status_code == 404
    assert listing.headers["X-Frame-Options"] == "DENY"
