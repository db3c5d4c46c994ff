from datetime import date

from tv.grouping import UNASSIGNED, build_view, dashboard_stats, group_by_status, week_bounds
from tv.models import (
    FilterSpec,
    GroupMode,
    Project,
    SortDirection,
    SortKey,
    Task,
    TaskPriority,
    TaskStatus,
    ViewState,
)


def _task(**fields) -> Task:
    fields.setdefault("id", "task")
    fields.setdefault("title", fields["id"])
    return Task.model_validate(fields)


# A Wednesday; its week runs Sunday 2024-01-07 to Saturday 2024-01-13.
TODAY = date(2024, 1, 10)


def test_status_grouping_partitions_into_three_buckets():
    tasks = [
        _task(id="1", status="done"),
        _task(id="2", status="todo"),
        _task(id="3", status="in_progress"),
        _task(id="4", status="todo"),
    ]
    columns = group_by_status(tasks)

    assert list(columns) == [TaskStatus.TODO, TaskStatus.IN_PROGRESS, TaskStatus.DONE]
    assert [t.id for t in columns[TaskStatus.TODO]] == ["2", "4"]
    assert sum(len(bucket) for bucket in columns.values()) == len(tasks)
    ids = [t.id for bucket in columns.values() for t in bucket]
    assert len(ids) == len(set(ids))


def test_status_grouping_of_nothing_still_has_three_buckets():
    assert group_by_status([]) == {TaskStatus.TODO: [], TaskStatus.IN_PROGRESS: [], TaskStatus.DONE: []}


def test_week_bounds_start_on_sunday():
    assert week_bounds(TODAY) == (date(2024, 1, 7), date(2024, 1, 13))
    assert week_bounds(date(2024, 1, 7)) == (date(2024, 1, 7), date(2024, 1, 13))


def test_dashboard_due_counts():
    tasks = [
        _task(id="overdue", due_date="2024-01-09", status="todo"),
        _task(id="overdue-done", due_date="2024-01-01", status="done"),
        _task(id="today", due_date="2024-01-10", status="in_progress"),
        _task(id="saturday", due_date="2024-01-13", status="todo"),
        _task(id="next-week", due_date="2024-01-14", status="todo"),
        _task(id="undated", due_date=None, status="todo"),
        _task(id="garbage", due_date="soon", status="todo"),
    ]
    stats = dashboard_stats(tasks, today=TODAY)

    assert stats.total == 7
    assert stats.overdue == 1
    assert stats.due_today == 1
    # overdue (Tuesday), today and Saturday fall inside the current week
    assert stats.due_this_week == 3


def test_dashboard_status_and_priority_buckets():
    tasks = [
        _task(status="todo", priority="urgent"),
        _task(status="done", priority="urgent"),
        _task(status="in_progress", priority="low"),
    ]
    stats = dashboard_stats(tasks, today=TODAY)

    assert stats.by_status == {TaskStatus.TODO: 1, TaskStatus.IN_PROGRESS: 1, TaskStatus.DONE: 1}
    assert stats.by_priority == {
        TaskPriority.URGENT: 1,
        TaskPriority.HIGH: 0,
        TaskPriority.MEDIUM: 0,
        TaskPriority.LOW: 1,
    }


def test_dashboard_assignee_buckets():
    tasks = [
        _task(assigned_to=None, status="todo"),
        _task(assigned_to="Alice", status="done"),
        _task(assigned_to=None, status="done"),
        _task(assigned_to="Alice", status="in_progress"),
    ]
    stats = dashboard_stats(tasks, today=TODAY)

    assert set(stats.by_assignee) == {UNASSIGNED, "Alice"}
    assert stats.by_assignee[UNASSIGNED].total == 2
    assert stats.by_assignee["Alice"].total == 2
    assert stats.by_assignee["Alice"].pending == 1
    assert stats.by_assignee["Alice"].done == 1


def test_dashboard_project_counts():
    projects = [Project(id="p1", name="Alpha")]
    tasks = [_task(project_id="p1"), _task(project_id="p1"), _task(project_id="gone"), _task()]
    stats = dashboard_stats(tasks, projects, today=TODAY)
    assert stats.by_project == {"Alpha": 2, "(No Project)": 2}


def test_build_view_filters_sorts_then_groups():
    tasks = [
        _task(id="1", status="todo", priority="low"),
        _task(id="2", status="done", priority="urgent"),
        _task(id="3", status="todo", priority="urgent"),
        _task(id="4", status="in_progress", priority="medium"),
    ]
    state = ViewState(
        filters=FilterSpec(status=["todo", "done"]),
        sort_by=SortKey.PRIORITY,
        sort_order=SortDirection.DESC,
        group_by=GroupMode.STATUS,
    )
    view = build_view(tasks, state)

    assert [t.id for t in view.tasks] == ["2", "3", "1"]
    assert view.total == 4
    assert [t.id for t in view.columns[TaskStatus.TODO]] == ["3", "1"]
    assert view.columns[TaskStatus.IN_PROGRESS] == []


def test_build_view_list_mode_has_no_columns():
    view = build_view([_task()], ViewState())
    assert view.columns is None
    assert len(view.tasks) == 1
