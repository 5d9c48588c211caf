from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Garante que o pacote tasktracker seja importável durante os testes locais
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from tasktracker.core.errors import NotFoundError, ValidationFailedError  # noqa: E402
from tasktracker.domain.ids import next_id  # noqa: E402
from tasktracker.domain.stats import percentage  # noqa: E402
from tasktracker.repositories.backups import BackupManager  # noqa: E402
from tasktracker.repositories.file_lock import FileLock  # noqa: E402
from tasktracker.repositories.json_storage import DocumentStore  # noqa: E402
from tasktracker.services.request_service import RequestService  # noqa: E402


@pytest.fixture()
def svc(tmp_path):
    data_file = tmp_path / "tasks.json"
    store = DocumentStore(
        data_file,
        FileLock(tmp_path / ".tasks.lock", timeout=1.0, retry_interval=0.01),
        BackupManager(data_file, tmp_path / ".backups"),
    )
    return RequestService(store)


def _task(title: str, **extra) -> dict:
    return {"title": title, "description": f"{title} description", **extra}


def test_next_id_picks_lowest_free_number():
    assert next_id("req", []) == "req-1"
    assert next_id("req", ["req-1", "req-2"]) == "req-3"
    assert next_id("req", ["req-2", "req-3"]) == "req-1"
    assert next_id("task", ["task-1", "task-3"]) == "task-2"


def test_percentage_rounds_half_up():
    assert percentage(1, 8) == 13
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(0, 0) == 0


def test_request_ids_are_recycled(svc):
    assert svc.create_request({"originalRequest": "first"})["requestId"] == "req-1"
    assert svc.create_request({"originalRequest": "second"})["requestId"] == "req-2"
    svc.delete_request("req-1")

    again = svc.create_request({"originalRequest": "third"})

    assert again["requestId"] == "req-1"
    assert [r["requestId"] for r in svc.list_full_requests()] == ["req-2", "req-1"]


def test_create_request_ignores_supplied_id_and_tasks(svc):
    created = svc.create_request(
        {"requestId": "custom", "originalRequest": "do things", "tasks": [{"id": "x"}]}
    )
    assert created == {
        "requestId": "req-1",
        "originalRequest": "do things",
        "splitDetails": "",
        "tasks": [],
        "completed": False,
    }


def test_create_request_requires_original_request(svc):
    with pytest.raises(ValidationFailedError) as excinfo:
        svc.create_request({"originalRequest": ""})
    assert excinfo.value.errors[0]["field"] == "originalRequest"
    assert svc.list_full_requests() == []


def test_get_returns_none_for_unknown_ids(svc):
    svc.create_request({"originalRequest": "one"})
    assert svc.get_request("req-9") is None
    assert svc.get_task("req-9", "task-1") is None
    assert svc.get_task("req-1", "task-1") is None


@pytest.mark.parametrize(
    "call",
    [
        lambda s: s.update_request("req-9", {"completed": True}),
        lambda s: s.delete_request("req-9"),
        lambda s: s.create_task("req-9", _task("A")),
        lambda s: s.update_task("req-1", "task-9", {"done": True}),
        lambda s: s.update_task("req-9", "task-1", {"done": True}),
        lambda s: s.delete_task("req-1", "task-9"),
        lambda s: s.delete_task("req-9", "task-1"),
    ],
)
def test_mutations_on_missing_entities_raise_not_found(svc, call):
    svc.create_request({"originalRequest": "one"})
    with pytest.raises(NotFoundError):
        call(svc)


def test_update_request_merges_fields_and_keeps_identity(svc):
    svc.create_request({"originalRequest": "one", "splitDetails": "a"})
    svc.create_task("req-1", _task("A"))

    updated = svc.update_request("req-1", {"completed": True, "requestId": "hijack", "tasks": []})

    assert updated["requestId"] == "req-1"
    assert updated["completed"] is True
    assert updated["splitDetails"] == "a"
    assert len(updated["tasks"]) == 1
    assert svc.get_request("req-1") == updated


def test_update_request_validates_merged_result(svc):
    svc.create_request({"originalRequest": "one"})
    with pytest.raises(ValidationFailedError):
        svc.update_request("req-1", {"originalRequest": ""})
    with pytest.raises(ValidationFailedError):
        svc.update_request("req-1", {"completed": "yes"})
    assert svc.get_request("req-1")["originalRequest"] == "one"


def test_delete_request_drops_its_tasks(svc):
    svc.create_request({"originalRequest": "one"})
    svc.create_task("req-1", _task("A"))
    svc.delete_request("req-1")
    assert svc.list_full_requests() == []
    assert svc.list_all_tasks() == []


def test_task_ids_are_scoped_to_their_request(svc):
    svc.create_request({"originalRequest": "one"})
    svc.create_request({"originalRequest": "two"})
    assert svc.create_task("req-1", _task("A"))["id"] == "task-1"
    assert svc.create_task("req-2", _task("B"))["id"] == "task-1"
    assert svc.create_task("req-1", _task("C"))["id"] == "task-2"
    svc.delete_task("req-1", "task-1")
    assert svc.create_task("req-1", _task("D", id="task-77"))["id"] == "task-1"


def test_task_title_length_is_limited(svc):
    svc.create_request({"originalRequest": "one"})
    with pytest.raises(ValidationFailedError):
        svc.create_task("req-1", _task("x" * 201))
    assert svc.create_task("req-1", _task("x" * 200))["id"] == "task-1"


def test_approved_is_independent_of_done(svc):
    svc.create_request({"originalRequest": "one"})
    task = svc.create_task("req-1", _task("A", approved=True))
    assert task["approved"] is True
    assert task["done"] is False


def test_update_task_keeps_id_and_unspecified_fields(svc):
    svc.create_request({"originalRequest": "one"})
    svc.create_task("req-1", _task("A", completedDetails="notes"))

    updated = svc.update_task("req-1", "task-1", {"done": True, "id": "task-5", "title": None})

    assert updated["id"] == "task-1"
    assert updated["done"] is True
    assert updated["title"] == "A"
    assert updated["completedDetails"] == "notes"


def test_summaries_report_derived_percentages(svc):
    svc.create_request({"originalRequest": "four tasks"})
    svc.create_request({"originalRequest": "no tasks"})
    svc.create_task("req-1", _task("A", done=True, approved=True))
    svc.create_task("req-1", _task("B", done=True))
    svc.create_task("req-1", _task("C"))
    svc.create_task("req-1", _task("D"))

    first, second = svc.list_request_summaries()

    assert first == {
        "requestId": "req-1",
        "originalRequest": "four tasks",
        "totalTasks": 4,
        "completedTasks": 2,
        "approvedTasks": 1,
        "completionPercentage": 50,
        "approvalPercentage": 25,
        "completed": False,
    }
    assert second["completionPercentage"] == 0
    assert second["approvalPercentage"] == 0
    assert "completionPercentage" not in svc.store.load()["requests"][0]


def test_create_tasks_then_complete_one(svc):
    request_id = svc.create_request({"originalRequest": "R"})["requestId"]
    task_a = svc.create_task(request_id, _task("A"))
    svc.create_task(request_id, _task("B"))
    svc.update_task(request_id, task_a["id"], {"done": True})

    data = svc.get_request_with_stats(request_id)

    assert data["totalTasks"] == 2
    assert data["completedTasks"] == 1
    assert data["completionPercentage"] == 50
    assert [t["title"] for t in data["tasks"]] == ["A", "B"]


def test_overall_stats(svc):
    svc.create_request({"originalRequest": "one", "completed": True})
    svc.create_request({"originalRequest": "two"})
    svc.create_task("req-1", _task("A", done=True, completedDetails="shipped"))
    svc.create_task("req-2", _task("B", approved=True))

    stats = svc.get_overall_stats()

    overview = stats["overview"]
    assert overview["totalRequests"] == 2
    assert overview["completedRequests"] == 1
    assert overview["requestCompletionRate"] == 50
    assert overview["tasksAwaitingApproval"] == 1
    assert overview["taskApprovalRate"] == 50
    assert stats["requestsByCompletion"][0]["requestId"] == "req-1"
    assert [a["taskId"] for a in stats["recentActivity"]] == ["task-1"]


def test_every_mutation_leaves_a_backup(svc):
    svc.create_request({"originalRequest": "one"})
    svc.create_task("req-1", _task("A"))
    svc.update_task("req-1", "task-1", {"done": True})

    status = svc.get_backup_status()
    assert status["totalBackups"] == 3
    assert status["integrityCheck"] is True
    assert svc.verify_data_integrity() is True
    assert Path(svc.create_manual_backup()).name.startswith("tasks-manual-")
