from datetime import datetime, timezone

import pytest

from tv.models import Task, TaskPriority, TaskStatus
from tv.transitions import (
    apply_updates,
    bulk_mark_done,
    bulk_set_priority,
    edit_task,
    mark_complete,
    new_task,
    status_change,
)


def _task(**fields) -> Task:
    fields.setdefault("id", "task")
    fields.setdefault("title", fields["id"])
    return Task.model_validate(fields)


NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def test_moving_to_done_stamps_completion():
    task = _task(status="in_progress")
    assert status_change(task, TaskStatus.DONE, NOW) == {
        "status": "done",
        "completed_at": "2024-01-10T12:00:00+00:00",
    }


def test_leaving_done_clears_completion():
    task = _task(status="done", completed_at="2024-01-01T00:00:00+00:00")
    assert status_change(task, TaskStatus.TODO, NOW) == {"status": "todo", "completed_at": None}


def test_move_between_open_columns_only_changes_status():
    task = _task(status="todo")
    assert status_change(task, TaskStatus.IN_PROGRESS, NOW) == {"status": "in_progress"}
    assert status_change(task, TaskStatus.TODO, NOW) == {}


def test_bulk_updates():
    done = bulk_mark_done(["a", "b"], NOW)
    assert done.ids == ["a", "b"]
    assert done.updates == mark_complete(NOW)

    priority = bulk_set_priority(["c"], TaskPriority.URGENT)
    assert priority.updates == {"priority": "urgent"}


def test_apply_updates_keeps_completion_invariant():
    task = _task(status="done", completed_at="2024-01-01T00:00:00+00:00")
    reopened = apply_updates(task, status_change(task, TaskStatus.TODO, NOW))
    assert reopened.status is TaskStatus.TODO
    assert reopened.completed_at is None

    finished = apply_updates(reopened, status_change(reopened, TaskStatus.DONE, NOW))
    assert finished.status is TaskStatus.DONE
    assert finished.completed_at == "2024-01-10T12:00:00+00:00"
    assert task.status is TaskStatus.DONE


def test_new_task_defaults():
    record = new_task("  Buy milk  ")
    assert record["title"] == "Buy milk"
    assert record["status"] == "todo"
    assert record["priority"] == "medium"
    assert record["tags"] == []
    assert record["completed_at"] is None


def test_new_task_created_done_is_stamped():
    record = new_task("Already shipped", status=TaskStatus.DONE, now=NOW)
    assert record["completed_at"] == "2024-01-10T12:00:00+00:00"


def test_blank_title_is_rejected():
    with pytest.raises(ValueError):
        new_task("   ")
    with pytest.raises(ValueError):
        edit_task(_task(), {"title": " "})


def test_edit_routes_status_through_completion_rule():
    task = _task(status="done", completed_at="2024-01-01T00:00:00+00:00")
    updates = edit_task(task, {"status": "in_progress", "priority": "high"}, NOW)
    assert updates == {"priority": "high", "status": "in_progress", "completed_at": None}

    unchanged = edit_task(task, {"status": "done", "assigned_to": "Alice"}, NOW)
    assert unchanged == {"assigned_to": "Alice"}
