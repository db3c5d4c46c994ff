from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterator

import httpx
import typer
from rich.console import Console
from rich.table import Table

from .backend_client import BackendNotConfigured
from .config import Settings, load_settings
from .grouping import build_view, dashboard_stats
from .logging_setup import setup_logging
from .models import (
    FilterSpec,
    GroupMode,
    Project,
    Task,
    TaskComment,
    TaskPriority,
    TaskStatus,
    ViewState,
)
from .reports import ReportFilter, export_csv, export_json, list_assignees, report_tasks
from .snapshot import TaskSource, load_snapshot, open_source
from .sorting import parse_sort_direction, parse_sort_key
from .storage import StoreError
from .transitions import bulk_mark_done, bulk_set_priority, edit_task, new_task, status_change
from .views import find_view, load_view, save_view, view_to_record

app = typer.Typer(help="Task view engine: filter, sort, group and report on tasks")
views_app = typer.Typer(help="Manage saved views")
projects_app = typer.Typer(help="Manage projects")
app.add_typer(views_app, name="views")
app.add_typer(projects_app, name="projects")
console = Console()

STATUS_LABELS = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Progress",
    TaskStatus.DONE: "Done",
}

DEFAULT_PROJECT_COLOR = "#6366f1"


@app.callback()
def main(
    ctx: typer.Context,
    remote: bool = typer.Option(False, "--remote", help="Read from the hosted backend instead of TV_DATA_DIR"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output"),
) -> None:
    settings = load_settings()
    setup_logging("DEBUG" if verbose else settings.log_level)
    ctx.obj = {"settings": settings, "remote": remote}


@contextmanager
def _source(ctx: typer.Context) -> Iterator[TaskSource]:
    settings: Settings = ctx.obj["settings"]
    try:
        source = open_source(settings, ctx.obj["remote"])
    except BackendNotConfigured as exc:
        raise typer.BadParameter(f"{exc} Set TV_BACKEND_URL and TV_API_KEY.") from exc
    try:
        yield source
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 401:
            raise typer.BadParameter("TV_ACCESS_TOKEN is invalid or expired.") from exc
        raise typer.BadParameter(f"Backend error: {exc.response.status_code} {exc.response.text}") from exc
    except httpx.RequestError as exc:
        raise typer.BadParameter(f"Network error while connecting to backend: {exc}") from exc
    except StoreError as exc:
        raise typer.BadParameter(str(exc)) from exc
    finally:
        source.close()


def _iso_date(value: str | None, label: str) -> str | None:
    if not value:
        return None
    try:
        date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"{label} must be YYYY-MM-DD, got {value!r}") from exc
    return value


def _priority(value: str) -> TaskPriority:
    parsed = TaskPriority.parse(value)
    if parsed is None:
        raise typer.BadParameter(f"Unknown priority {value!r}")
    return parsed


def _status(value: str) -> TaskStatus:
    parsed = TaskStatus.parse(value)
    if parsed is None:
        raise typer.BadParameter(f"Unknown status {value!r}")
    return parsed


def _filter_spec(
    search: str | None,
    status: list[str] | None,
    priority: list[str] | None,
    project: str | None,
    tag: list[str] | None,
    due_from: str | None,
    due_to: str | None,
    assignee: str | None,
) -> FilterSpec:
    return FilterSpec(
        search=search,
        status=status or None,
        priority=priority or None,
        project_id=project,
        tags=tag or None,
        due_date_from=_iso_date(due_from, "Due date bound"),
        due_date_to=_iso_date(due_to, "Due date bound"),
        assigned_to=assignee,
    )


def _task_table(tasks: list[Task], projects: list[Project], title: str) -> Table:
    project_names = {project.id: project.name for project in projects}
    table = Table(title=title)
    for column in ("ID", "Title", "Status", "Priority", "Due", "Project", "Assignee", "Tags"):
        table.add_column(column)
    for task in tasks:
        table.add_row(
            task.id,
            task.title,
            STATUS_LABELS[task.status],
            task.priority.value,
            task.due_date or "",
            project_names.get(task.project_id, "") if task.project_id else "",
            task.assigned_to or "",
            ", ".join(task.tags),
        )
    return table


@app.command("list")
def list_tasks(
    ctx: typer.Context,
    search: str | None = typer.Option(None, "--search", "-s", help="Match title, description or tag"),
    status: list[str] = typer.Option(None, "--status", help="Keep tasks with this status (repeatable)"),
    priority: list[str] = typer.Option(None, "--priority", help="Keep tasks with this priority (repeatable)"),
    project: str | None = typer.Option(None, "--project", help="Project id"),
    tag: list[str] = typer.Option(None, "--tag", help="Keep tasks carrying any of these tags"),
    due_from: str | None = typer.Option(None, "--due-from", help="Earliest due date, YYYY-MM-DD"),
    due_to: str | None = typer.Option(None, "--due-to", help="Latest due date, YYYY-MM-DD"),
    assignee: str | None = typer.Option(None, "--assignee", help="Assignee name"),
    sort: str = typer.Option("created_at", "--sort", help="Sort key"),
    order: str = typer.Option("desc", "--order", help="asc or desc"),
    view: str | None = typer.Option(None, "--view", help="Load a saved view by name or id"),
    board: bool = typer.Option(False, "--board", help="Group into status columns"),
    csv_out: Path | None = typer.Option(None, "--csv", help="Also write the visible rows as CSV"),
) -> None:
    """List tasks through the current filter and sort."""
    state = ViewState(
        filters=_filter_spec(search, status, priority, project, tag, due_from, due_to, assignee),
        sort_by=parse_sort_key(sort),
        sort_order=parse_sort_direction(order),
        group_by=GroupMode.STATUS if board else GroupMode.LIST,
    )
    with _source(ctx) as source:
        snapshot = load_snapshot(source, include_views=view is not None)

    if view is not None:
        saved = find_view(snapshot.views, view)
        if saved is None:
            raise typer.BadParameter(f"No saved view named {view!r}")
        state = load_view(saved, state)

    result = build_view(snapshot.tasks, state)
    if result.columns is not None:
        for column_status, column_tasks in result.columns.items():
            label = f"{STATUS_LABELS[column_status]} ({len(column_tasks)})"
            console.print(_task_table(column_tasks, snapshot.projects, label))
    else:
        console.print(_task_table(result.tasks, snapshot.projects, f"Tasks ({len(result.tasks)}/{result.total})"))
        if not result.tasks:
            console.print("Add your first task to get started" if not result.total else "Try adjusting your filters")

    if csv_out:
        csv_out.write_text(export_csv(result.tasks, snapshot.projects))
        console.print(f"CSV saved to: {csv_out}")


@app.command()
def dashboard(ctx: typer.Context) -> None:
    """Show overdue/due counts and breakdowns over all tasks."""
    with _source(ctx) as source:
        snapshot = load_snapshot(source)
    stats = dashboard_stats(snapshot.tasks, snapshot.projects)

    console.print(f"Total tasks: {stats.total}")
    console.print(f"Overdue: {stats.overdue}")
    console.print(f"Due today: {stats.due_today}")
    console.print(f"Due this week: {stats.due_this_week}")

    status_table = Table(title="Tasks by Status")
    status_table.add_column("Status")
    status_table.add_column("Count", justify="right")
    for task_status, count in stats.by_status.items():
        status_table.add_row(STATUS_LABELS[task_status], str(count))
    console.print(status_table)

    priority_table = Table(title="Open Tasks by Priority")
    priority_table.add_column("Priority")
    priority_table.add_column("Count", justify="right")
    for task_priority, count in stats.by_priority.items():
        priority_table.add_row(task_priority.value.title(), str(count))
    console.print(priority_table)

    assignee_table = Table(title="Tasks by Assignee")
    for column in ("Assignee", "Total", "Pending", "Done"):
        assignee_table.add_column(column)
    for name, counts in sorted(stats.by_assignee.items()):
        assignee_table.add_row(name, str(counts.total), str(counts.pending), str(counts.done))
    console.print(assignee_table)

    if stats.by_project:
        console.print("Tasks by project:")
        for name, count in stats.by_project.items():
            console.print(f"- {name}: {count}")


@app.command()
def report(
    ctx: typer.Context,
    created_from: str = typer.Option(..., "--from", help="Created on or after, YYYY-MM-DD"),
    created_to: str = typer.Option(..., "--to", help="Created on or before, YYYY-MM-DD"),
    status: str | None = typer.Option(None, "--status", help="Only this status"),
    assignee: str | None = typer.Option(None, "--assignee", help="Only this assignee"),
    output: Path | None = typer.Option(None, "--output", "-o", help="CSV path"),
) -> None:
    """Export a CSV report of tasks created in a date range."""
    try:
        report_filter = ReportFilter(
            created_from=date.fromisoformat(created_from),
            created_to=date.fromisoformat(created_to),
            status=TaskStatus(status) if status else None,
            assigned_to=assignee,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    with _source(ctx) as source:
        snapshot = load_snapshot(source)
    rows = report_tasks(snapshot.tasks, report_filter)
    path = output or Path(f"tasks-report-{date.today().isoformat()}.csv")
    path.write_text(export_csv(rows, snapshot.projects))
    console.print(f"Report saved to: {path} ({len(rows)} tasks)")
    assignees = list_assignees(snapshot.tasks)
    if assignees:
        console.print(f"Assignees: {', '.join(assignees)}")


@app.command("export-json")
def export_json_command(
    ctx: typer.Context,
    output: Path | None = typer.Option(None, "--output", "-o", help="JSON path"),
) -> None:
    """Export every task and project as JSON."""
    with _source(ctx) as source:
        snapshot = load_snapshot(source)
    path = output or Path(f"taskflow-export-{date.today().isoformat()}.json")
    path.write_text(export_json(snapshot.tasks, snapshot.projects))
    console.print(f"Data exported to: {path}")


@app.command()
def add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Task title"),
    description: str | None = typer.Option(None, "--description", "-d"),
    priority: str = typer.Option("medium", "--priority", help="low, medium, high or urgent"),
    status: str = typer.Option("todo", "--status", help="todo, in_progress or done"),
    due: str | None = typer.Option(None, "--due", help="Due date, YYYY-MM-DD"),
    project: str | None = typer.Option(None, "--project", help="Project id"),
    tag: list[str] = typer.Option(None, "--tag", help="Tag (repeatable)"),
    assignee: str | None = typer.Option(None, "--assignee"),
) -> None:
    """Create a task."""
    try:
        record = new_task(
            title,
            description=description,
            status=_status(status),
            priority=_priority(priority),
            due_date=_iso_date(due, "Due date"),
            project_id=project,
            tags=tag,
            assigned_to=assignee,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    with _source(ctx) as source:
        created = source.create_task(record)
    console.print(f"Task created: {created.get('id', '')}")


@app.command()
def edit(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id"),
    title: str | None = typer.Option(None, "--title"),
    description: str | None = typer.Option(None, "--description", "-d"),
    priority: str | None = typer.Option(None, "--priority"),
    status: str | None = typer.Option(None, "--status"),
    due: str | None = typer.Option(None, "--due", help="Due date, YYYY-MM-DD"),
    clear_due: bool = typer.Option(False, "--clear-due", help="Remove the due date"),
    project: str | None = typer.Option(None, "--project", help="Project id"),
    no_project: bool = typer.Option(False, "--no-project", help="Detach from its project"),
    tag: list[str] = typer.Option(None, "--tag", help="Replace tags (repeatable)"),
    assignee: str | None = typer.Option(None, "--assignee"),
    unassign: bool = typer.Option(False, "--unassign"),
) -> None:
    """Change fields of a task."""
    changes: dict[str, object] = {}
    if title is not None:
        changes["title"] = title.strip()
    if description is not None:
        changes["description"] = description
    if priority is not None:
        changes["priority"] = _priority(priority).value
    if status is not None:
        changes["status"] = _status(status).value
    if due is not None or clear_due:
        changes["due_date"] = None if clear_due else _iso_date(due, "Due date")
    if project is not None or no_project:
        changes["project_id"] = None if no_project else project
    if tag:
        changes["tags"] = list(tag)
    if assignee is not None or unassign:
        changes["assigned_to"] = None if unassign else assignee
    if not changes:
        raise typer.BadParameter("Nothing to change.")

    with _source(ctx) as source:
        snapshot = load_snapshot(source)
        task = next((item for item in snapshot.tasks if item.id == task_id), None)
        if task is None:
            raise typer.BadParameter(f"No task with id {task_id!r}")
        try:
            updates = edit_task(task, changes)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        if updates:
            source.update_task(task_id, updates)
    console.print(f"Task updated: {task_id}")


@app.command()
def move(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id"),
    status: str = typer.Argument(..., help="todo, in_progress or done"),
) -> None:
    """Move a task to another status column."""
    new_status = _status(status)
    with _source(ctx) as source:
        snapshot = load_snapshot(source)
        task = next((item for item in snapshot.tasks if item.id == task_id), None)
        if task is None:
            raise typer.BadParameter(f"No task with id {task_id!r}")
        updates = status_change(task, new_status)
        if updates:
            source.update_task(task_id, updates)
    console.print(f"Task {task_id}: {STATUS_LABELS[new_status]}")


@app.command()
def done(
    ctx: typer.Context,
    task_ids: list[str] = typer.Argument(..., help="Task ids"),
) -> None:
    """Mark tasks complete."""
    bulk = bulk_mark_done(task_ids)
    with _source(ctx) as source:
        source.update_tasks(bulk.ids, bulk.updates)
    console.print(f"{len(bulk.ids)} tasks completed")


@app.command("set-priority")
def set_priority(
    ctx: typer.Context,
    priority: str = typer.Argument(..., help="low, medium, high or urgent"),
    task_ids: list[str] = typer.Argument(..., help="Task ids"),
) -> None:
    """Change the priority of several tasks at once."""
    new_priority = _priority(priority)
    bulk = bulk_set_priority(task_ids, new_priority)
    with _source(ctx) as source:
        source.update_tasks(bulk.ids, bulk.updates)
    console.print(f"{len(bulk.ids)} tasks updated")


@app.command()
def delete(
    ctx: typer.Context,
    task_ids: list[str] = typer.Argument(..., help="Task ids"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete tasks."""
    if not yes:
        typer.confirm(f"Delete {len(task_ids)} tasks?", abort=True)
    with _source(ctx) as source:
        source.delete_tasks(task_ids)
    console.print(f"{len(task_ids)} tasks deleted")


@app.command()
def comments(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task id"),
    add: str | None = typer.Option(None, "--add", help="Post a comment first"),
    delete: str | None = typer.Option(None, "--delete", help="Remove the comment with this id first"),
) -> None:
    """Show the comment thread of a task."""
    with _source(ctx) as source:
        if delete:
            source.delete_comment(delete)
        if add:
            source.create_comment(task_id, add)
        thread = [TaskComment.model_validate(raw) for raw in source.get_comments(task_id)]
    if not thread:
        console.print("No comments yet")
    for comment in thread:
        console.print(f"{comment.id}  {comment.created_at or '-'}  {comment.content}", markup=False)


@views_app.command("list")
def views_list(ctx: typer.Context) -> None:
    """List saved views."""
    with _source(ctx) as source:
        snapshot = load_snapshot(source, include_views=True)
    table = Table(title="Saved views")
    for column in ("ID", "Name", "Sort", "Filters"):
        table.add_column(column)
    for view in snapshot.views:
        filters = view.filters.model_dump_json(exclude_none=True)
        table.add_row(view.id or "", view.name, f"{view.sort_by.value} {view.sort_order.value}", filters)
    console.print(table)


@views_app.command("save")
def views_save(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="View name"),
    search: str | None = typer.Option(None, "--search", "-s"),
    status: list[str] = typer.Option(None, "--status"),
    priority: list[str] = typer.Option(None, "--priority"),
    project: str | None = typer.Option(None, "--project"),
    tag: list[str] = typer.Option(None, "--tag"),
    due_from: str | None = typer.Option(None, "--due-from"),
    due_to: str | None = typer.Option(None, "--due-to"),
    assignee: str | None = typer.Option(None, "--assignee"),
    sort: str = typer.Option("created_at", "--sort"),
    order: str = typer.Option("desc", "--order"),
) -> None:
    """Save the given filter and sort under a name."""
    state = ViewState(
        filters=_filter_spec(search, status, priority, project, tag, due_from, due_to, assignee),
        sort_by=parse_sort_key(sort),
        sort_order=parse_sort_direction(order),
    )
    with _source(ctx) as source:
        created = source.create_view(view_to_record(save_view(name, state)))
    console.print(f"View saved: {name} ({created.get('id', '')})")


@views_app.command("delete")
def views_delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="View name or id"),
) -> None:
    """Delete a saved view."""
    with _source(ctx) as source:
        snapshot = load_snapshot(source, include_views=True)
        view = find_view(snapshot.views, name)
        if view is None or not view.id:
            raise typer.BadParameter(f"No saved view named {name!r}")
        source.delete_view(view.id)
    console.print(f"View deleted: {view.name}")


@projects_app.command("list")
def projects_list(ctx: typer.Context) -> None:
    """List projects."""
    with _source(ctx) as source:
        snapshot = load_snapshot(source)
    table = Table(title="Projects")
    for column in ("ID", "Name", "Color"):
        table.add_column(column)
    for project in snapshot.projects:
        table.add_row(project.id, project.name, project.color)
    console.print(table)


@projects_app.command("add")
def projects_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Project name"),
    color: str = typer.Option(DEFAULT_PROJECT_COLOR, "--color", help="Display color, #rrggbb"),
) -> None:
    """Create a project."""
    if not name.strip():
        raise typer.BadParameter("Project name must not be blank.")
    with _source(ctx) as source:
        created = source.create_project({"name": name.strip(), "color": color})
    console.print(f"Project created: {name.strip()} ({created.get('id', '')})")


if __name__ == "__main__":
    app()
