from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .models import Task, TaskPriority, TaskStatus


@dataclass
class BulkUpdate:
    ids: list[str]
    updates: dict[str, Any]


def _timestamp(now: datetime | None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def status_change(task: Task, new_status: TaskStatus, now: datetime | None = None) -> dict[str, Any]:
    """Build the update payload for moving ``task`` to ``new_status``.

    Keeps ``completed_at`` in step with the ``done`` status: entering ``done``
    stamps it, leaving ``done`` clears it.
    """
    if task.status is new_status:
        return {}
    updates: dict[str, Any] = {"status": new_status.value}
    if new_status is TaskStatus.DONE:
        updates["completed_at"] = _timestamp(now)
    elif task.status is TaskStatus.DONE:
        updates["completed_at"] = None
    return updates


def mark_complete(now: datetime | None = None) -> dict[str, Any]:
    return {"status": TaskStatus.DONE.value, "completed_at": _timestamp(now)}


def bulk_mark_done(ids: list[str], now: datetime | None = None) -> BulkUpdate:
    return BulkUpdate(ids=list(ids), updates=mark_complete(now))


def bulk_set_priority(ids: list[str], priority: TaskPriority) -> BulkUpdate:
    return BulkUpdate(ids=list(ids), updates={"priority": priority.value})


def new_task(
    title: str,
    description: str | None = None,
    status: TaskStatus = TaskStatus.TODO,
    priority: TaskPriority = TaskPriority.MEDIUM,
    due_date: str | None = None,
    project_id: str | None = None,
    tags: list[str] | None = None,
    assigned_to: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    title = title.strip()
    if not title:
        raise ValueError("Task title must not be blank.")
    return {
        "title": title,
        "description": description,
        "status": status.value,
        "priority": priority.value,
        "due_date": due_date,
        "project_id": project_id,
        "tags": list(tags or []),
        "assigned_to": assigned_to,
        "completed_at": _timestamp(now) if status is TaskStatus.DONE else None,
    }


def edit_task(task: Task, changes: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """Update payload for a task edit; a status in ``changes`` goes through ``status_change``."""
    updates = {key: value for key, value in changes.items() if key != "status"}
    if "title" in updates and not str(updates["title"]).strip():
        raise ValueError("Task title must not be blank.")
    new_status = changes.get("status")
    if new_status is not None:
        updates.update(status_change(task, TaskStatus(new_status), now))
    return updates


def apply_updates(task: Task, updates: dict[str, Any]) -> Task:
    merged = task.model_dump(mode="json")
    merged.update(updates)
    return Task.model_validate(merged)
