from __future__ import annotations

from typing import Any, Iterable

from .models import SavedView, ViewState


def save_view(name: str, state: ViewState) -> SavedView:
    """Snapshot the active filters and sort under ``name``.

    Nothing is checked against current projects or assignees; a view that
    points at a deleted project simply filters down to no rows.
    """
    return SavedView(
        name=name,
        filters=state.filters.model_copy(deep=True),
        sort_by=state.sort_by,
        sort_order=state.sort_order,
    )


def load_view(view: SavedView, current: ViewState | None = None) -> ViewState:
    group_by = current.group_by if current else ViewState().group_by
    return ViewState(
        filters=view.filters.model_copy(deep=True),
        sort_by=view.sort_by,
        sort_order=view.sort_order,
        group_by=group_by,
    )


def view_to_record(view: SavedView) -> dict[str, Any]:
    record: dict[str, Any] = {
        "name": view.name,
        "filters": view.filters.model_dump(mode="json", exclude_none=True),
        "sort_by": view.sort_by.value,
        "sort_order": view.sort_order.value,
    }
    if view.id:
        record["id"] = view.id
    if view.user_id:
        record["user_id"] = view.user_id
    if view.created_at:
        record["created_at"] = view.created_at
    return record


def view_from_record(raw: dict[str, Any]) -> SavedView:
    return SavedView.model_validate(raw)


def find_view(views: Iterable[SavedView], name_or_id: str) -> SavedView | None:
    views = list(views)
    for view in views:
        if view.id and view.id == name_or_id:
            return view
    for view in views:
        if view.name == name_or_id:
            return view
    lowered = name_or_id.lower()
    for view in views:
        if view.name.lower() == lowered:
            return view
    return None
