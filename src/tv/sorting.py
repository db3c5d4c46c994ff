from __future__ import annotations

from typing import Any, Callable, Iterable

from .models import (
    PRIORITY_RANK,
    SortDirection,
    SortKey,
    Task,
    coerce_sort_direction,
    coerce_sort_key,
)


def _priority_key(task: Task) -> int:
    return PRIORITY_RANK.get(task.priority, 0)


def _due_date_key(task: Task) -> str:
    return task.due_date or ""


def _title_key(task: Task) -> str:
    return task.title.lower()


def _status_key(task: Task) -> str:
    return task.status.value


def _text_key(attribute: str) -> Callable[[Task], str]:
    def key(task: Task) -> str:
        return getattr(task, attribute, None) or ""

    return key


SORT_KEYS: dict[SortKey, Callable[[Task], Any]] = {
    SortKey.PRIORITY: _priority_key,
    SortKey.DUE_DATE: _due_date_key,
    SortKey.TITLE: _title_key,
    SortKey.STATUS: _status_key,
    SortKey.CREATED_AT: _text_key("created_at"),
    SortKey.UPDATED_AT: _text_key("updated_at"),
    SortKey.COMPLETED_AT: _text_key("completed_at"),
    SortKey.ASSIGNED_TO: _text_key("assigned_to"),
}


def parse_sort_key(raw: str | SortKey | None) -> SortKey:
    return coerce_sort_key(raw)


def parse_sort_direction(raw: str | SortDirection | None) -> SortDirection:
    return coerce_sort_direction(raw)


def sort_tasks(
    tasks: Iterable[Task],
    key: SortKey | str = SortKey.CREATED_AT,
    direction: SortDirection | str = SortDirection.DESC,
) -> list[Task]:
    sort_key = SORT_KEYS[parse_sort_key(key)]
    # sorted() is stable and keeps tie order under reverse=True as well.
    return sorted(tasks, key=sort_key, reverse=parse_sort_direction(direction) is SortDirection.DESC)
