from __future__ import annotations

from typing import Iterable

from .models import FilterSpec, Task


def _matches_search(task: Task, search: str | None) -> bool:
    if not search:
        return True
    needle = search.lower()
    if needle in task.title.lower():
        return True
    if task.description and needle in task.description.lower():
        return True
    return any(needle in tag.lower() for tag in task.tags)


def _matches_tags(task: Task, tags: list[str] | None) -> bool:
    if not tags:
        return True
    normalized = {tag.lower() for tag in tags}
    return any(tag.lower() in normalized for tag in task.tags)


def _matches_due_range(task: Task, due_from: str | None, due_to: str | None) -> bool:
    if not due_from and not due_to:
        return True
    # Undated tasks never satisfy a date range, even a one-sided one.
    if not task.due_date:
        return False
    if due_from and task.due_date < due_from:
        return False
    if due_to and task.due_date > due_to:
        return False
    return True


def matches(task: Task, spec: FilterSpec) -> bool:
    if not _matches_search(task, spec.search):
        return False
    if spec.status and task.status not in spec.status:
        return False
    if spec.priority and task.priority not in spec.priority:
        return False
    if spec.project_id is not None and task.project_id != spec.project_id:
        return False
    if not _matches_tags(task, spec.tags):
        return False
    if not _matches_due_range(task, spec.due_date_from, spec.due_date_to):
        return False
    if spec.assigned_to is not None and task.assigned_to != spec.assigned_to:
        return False
    return True


def apply_filters(tasks: Iterable[Task], spec: FilterSpec | None) -> list[Task]:
    if spec is None or spec.is_empty():
        return list(tasks)
    return [task for task in tasks if matches(task, spec)]
