from __future__ import annotations

import csv
import io
import json
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Iterable

from .models import Project, Task, TaskStatus

CSV_HEADERS = ["Title", "Status", "Priority", "Due Date", "Project", "Assigned To", "Created", "Completed"]


@dataclass
class ReportFilter:
    created_from: date
    created_to: date
    status: TaskStatus | None = None
    assigned_to: str | None = None


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _day(value: str | None) -> str:
    parsed = _parse_timestamp(value)
    return parsed.date().isoformat() if parsed else ""


def report_tasks(tasks: Iterable[Task], report: ReportFilter) -> list[Task]:
    selected: list[Task] = []
    for task in tasks:
        created = _parse_timestamp(task.created_at)
        if not created or not report.created_from <= created.date() <= report.created_to:
            continue
        if report.status is not None and task.status is not report.status:
            continue
        if report.assigned_to is not None and task.assigned_to != report.assigned_to:
            continue
        selected.append(task)
    return selected


def list_assignees(tasks: Iterable[Task]) -> list[str]:
    return sorted({task.assigned_to for task in tasks if task.assigned_to})


def export_csv(tasks: Iterable[Task], projects: Iterable[Project]) -> str:
    project_names = {project.id: project.name for project in projects}
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for task in tasks:
        writer.writerow(
            [
                task.title,
                task.status.value,
                task.priority.value,
                task.due_date or "",
                project_names.get(task.project_id, "") if task.project_id else "",
                task.assigned_to or "",
                _day(task.created_at),
                _day(task.completed_at),
            ]
        )
    return buffer.getvalue()


def export_json(
    tasks: Iterable[Task],
    projects: Iterable[Project],
    exported_at: datetime | None = None,
) -> str:
    data = {
        "tasks": [task.model_dump(mode="json") for task in tasks],
        "projects": [project.model_dump(mode="json") for project in projects],
        "exportedAt": (exported_at or datetime.now(timezone.utc)).isoformat(),
    }
    return json.dumps(data, indent=2, ensure_ascii=False)
