from tv.filtering import apply_filters, matches
from tv.models import FilterSpec, Task, TaskPriority, TaskStatus


def _task(**fields) -> Task:
    fields.setdefault("id", "task")
    fields.setdefault("title", fields["id"])
    return Task.model_validate(fields)


def _sample():
    return [
        _task(id="1", title="Write docs", status="todo", priority="low", due_date="2024-01-05", tags=["Docs"]),
        _task(id="2", title="Ship release", status="done", priority="high", project_id="p1", assigned_to="Alice"),
        _task(id="3", title="Review PR", description="Check the parser", status="done", priority="urgent"),
        _task(id="4", title="Plan sprint", status="in_progress", priority="medium", due_date="2024-02-01"),
    ]


def test_empty_spec_is_identity():
    tasks = _sample()
    assert apply_filters(tasks, FilterSpec()) == tasks
    assert apply_filters(tasks, None) == tasks
    assert apply_filters(tasks, FilterSpec(search="", status=[], priority=[], project_id="")) == tasks


def test_status_filter_keeps_input_order():
    result = apply_filters(_sample(), FilterSpec(status=["done"]))
    assert [task.id for task in result] == ["2", "3"]


def test_search_matches_title_description_and_tags():
    tasks = _sample()
    assert [t.id for t in apply_filters(tasks, FilterSpec(search="RELEASE"))] == ["2"]
    assert [t.id for t in apply_filters(tasks, FilterSpec(search="parser"))] == ["3"]
    assert [t.id for t in apply_filters(tasks, FilterSpec(search="docs"))] == ["1"]


def test_priority_project_and_assignee_filters():
    tasks = _sample()
    spec = FilterSpec(priority=[TaskPriority.HIGH, TaskPriority.URGENT])
    assert [t.id for t in apply_filters(tasks, spec)] == ["2", "3"]
    assert [t.id for t in apply_filters(tasks, FilterSpec(project_id="p1"))] == ["2"]
    assert [t.id for t in apply_filters(tasks, FilterSpec(assigned_to="Alice"))] == ["2"]
    assert apply_filters(tasks, FilterSpec(project_id="deleted-project")) == []


def test_tag_filter_is_case_insensitive():
    assert [t.id for t in apply_filters(_sample(), FilterSpec(tags=["docs"]))] == ["1"]


def test_date_range_excludes_undated_tasks():
    tasks = [
        _task(id="a", due_date=None),
        _task(id="b", due_date="2024-01-15"),
        _task(id="c", due_date=None),
    ]
    spec = FilterSpec(due_date_from="2024-01-01", due_date_to="2024-01-31")
    assert [t.id for t in apply_filters(tasks, spec)] == ["b"]
    assert [t.id for t in apply_filters(tasks, FilterSpec(due_date_to="2030-01-01"))] == ["b"]


def test_date_bounds_are_inclusive():
    tasks = _sample()
    spec = FilterSpec(due_date_from="2024-01-05", due_date_to="2024-02-01")
    assert [t.id for t in apply_filters(tasks, spec)] == ["1", "4"]
    assert [t.id for t in apply_filters(tasks, FilterSpec(due_date_from="2024-01-06"))] == ["4"]


def test_combined_fields_equal_sequential_application():
    tasks = _sample()
    status_only = FilterSpec(status=[TaskStatus.DONE])
    priority_only = FilterSpec(priority=[TaskPriority.URGENT, TaskPriority.LOW])
    combined = FilterSpec(status=[TaskStatus.DONE], priority=[TaskPriority.URGENT, TaskPriority.LOW])

    one_way = apply_filters(apply_filters(tasks, status_only), priority_only)
    other_way = apply_filters(apply_filters(tasks, priority_only), status_only)
    assert apply_filters(tasks, combined) == one_way == other_way
    assert [t.id for t in one_way] == ["3"]


def test_result_is_ordered_subset():
    tasks = _sample()
    result = apply_filters(tasks, FilterSpec(search="e"))
    positions = [tasks.index(task) for task in result]
    assert positions == sorted(positions)


def test_unknown_filter_values_are_dropped():
    spec = FilterSpec(status=["done", "archived"], priority="urgent")
    assert spec.status == [TaskStatus.DONE]
    assert spec.priority == [TaskPriority.URGENT]
    assert matches(_task(status="done", priority="urgent"), spec)
