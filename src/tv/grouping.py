from __future__ import annotations

from collections import Counter
from datetime import date, datetime, timedelta
from typing import Iterable

from pydantic import BaseModel, Field

from .filtering import apply_filters
from .models import GroupMode, Project, Task, TaskPriority, TaskStatus, ViewState
from .sorting import sort_tasks

UNASSIGNED = "Unassigned"
NO_PROJECT = "(No Project)"


class AssigneeCounts(BaseModel):
    total: int = 0
    pending: int = 0
    done: int = 0


class DashboardStats(BaseModel):
    total: int = 0
    overdue: int = 0
    due_today: int = 0
    due_this_week: int = 0
    by_status: dict[TaskStatus, int] = Field(default_factory=dict)
    by_priority: dict[TaskPriority, int] = Field(default_factory=dict)
    by_assignee: dict[str, AssigneeCounts] = Field(default_factory=dict)
    by_project: dict[str, int] = Field(default_factory=dict)


class TaskView(BaseModel):
    """What presentation renders: the visible rows and, for kanban, their columns."""

    tasks: list[Task]
    columns: dict[TaskStatus, list[Task]] | None = None
    total: int = 0


def _parse_due(task: Task) -> date | None:
    if not task.due_date:
        return None
    try:
        return date.fromisoformat(task.due_date)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(task.due_date).date()
    except ValueError:
        return None


def week_bounds(today: date) -> tuple[date, date]:
    # Calendar weeks run Sunday through Saturday.
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def group_by_status(tasks: Iterable[Task]) -> dict[TaskStatus, list[Task]]:
    columns: dict[TaskStatus, list[Task]] = {status: [] for status in TaskStatus}
    for task in tasks:
        columns[task.status].append(task)
    return columns


def tasks_by_assignee(tasks: Iterable[Task]) -> dict[str, AssigneeCounts]:
    buckets: dict[str, AssigneeCounts] = {}
    for task in tasks:
        counts = buckets.setdefault(task.assigned_to or UNASSIGNED, AssigneeCounts())
        counts.total += 1
        if task.status is TaskStatus.DONE:
            counts.done += 1
        else:
            counts.pending += 1
    return buckets


def tasks_by_project(tasks: Iterable[Task], projects: Iterable[Project] = ()) -> Counter:
    names = {project.id: project.name for project in projects}
    counter: Counter[str] = Counter()
    for task in tasks:
        name = names.get(task.project_id) if task.project_id else None
        counter[name or NO_PROJECT] += 1
    return counter


def dashboard_stats(
    tasks: Iterable[Task],
    projects: Iterable[Project] = (),
    today: date | None = None,
) -> DashboardStats:
    tasks = list(tasks)
    today = today or date.today()
    week_start, week_end = week_bounds(today)

    stats = DashboardStats(
        total=len(tasks),
        by_status={status: 0 for status in TaskStatus},
        by_priority={priority: 0 for priority in reversed(TaskPriority)},
    )
    for task in tasks:
        stats.by_status[task.status] += 1
        if task.status is TaskStatus.DONE:
            continue
        stats.by_priority[task.priority] += 1
        due = _parse_due(task)
        if not due:
            continue
        if due < today:
            stats.overdue += 1
        elif due == today:
            stats.due_today += 1
        if week_start <= due <= week_end:
            stats.due_this_week += 1

    stats.by_assignee = tasks_by_assignee(tasks)
    stats.by_project = dict(tasks_by_project(tasks, projects).most_common())
    return stats


def build_view(tasks: Iterable[Task], state: ViewState) -> TaskView:
    tasks = list(tasks)
    visible = sort_tasks(apply_filters(tasks, state.filters), state.sort_by, state.sort_order)
    columns = group_by_status(visible) if state.group_by is GroupMode.STATUS else None
    return TaskView(tasks=visible, columns=columns, total=len(tasks))
