from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import ValidationError

from .backend_client import BackendClient, BackendNotConfigured
from .config import Settings
from .models import Project, SavedView, Task
from .storage import LocalStore

logger = logging.getLogger(__name__)


class TaskSource(Protocol):
    """What the CLI needs from either the hosted backend or a local data dir."""

    def close(self) -> None: ...

    def get_tasks(self) -> list[dict[str, Any]]: ...

    def get_projects(self) -> list[dict[str, Any]]: ...

    def get_saved_views(self) -> list[dict[str, Any]]: ...

    def get_comments(self, task_id: str) -> list[dict[str, Any]]: ...

    def create_task(self, task: dict[str, Any]) -> dict[str, Any]: ...

    def update_task(self, task_id: str, updates: dict[str, Any]) -> dict[str, Any]: ...

    def update_tasks(self, ids: list[str], updates: dict[str, Any]) -> None: ...

    def delete_task(self, task_id: str) -> None: ...

    def delete_tasks(self, ids: list[str]) -> None: ...

    def create_project(self, project: dict[str, Any]) -> dict[str, Any]: ...

    def create_view(self, view: dict[str, Any]) -> dict[str, Any]: ...

    def delete_view(self, view_id: str) -> None: ...

    def create_comment(self, task_id: str, content: str) -> dict[str, Any]: ...

    def delete_comment(self, comment_id: str) -> None: ...


@dataclass
class Snapshot:
    tasks: list[Task] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    views: list[SavedView] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _normalize(rows: list[dict[str, Any]], model: type, kind: str, warnings: list[str]) -> list:
    items = []
    for raw in rows:
        if raw.get("id") is None and kind != "view":
            warnings.append(f"Skipped {kind} without id")
            continue
        try:
            items.append(model.model_validate(raw))
        except ValidationError as exc:
            warnings.append(f"Skipped malformed {kind} {raw.get('id')}: {exc.error_count()} error(s)")
    return items


def build_snapshot_from_data(
    tasks: list[dict[str, Any]],
    projects: list[dict[str, Any]],
    views: list[dict[str, Any]] | None = None,
) -> Snapshot:
    warnings: list[str] = []
    snapshot = Snapshot(
        tasks=_normalize(tasks, Task, "task", warnings),
        projects=_normalize(projects, Project, "project", warnings),
        views=_normalize(views or [], SavedView, "view", warnings),
    )
    snapshot.warnings = warnings
    for warning in warnings:
        logger.warning(warning)
    return snapshot


def load_snapshot(source: TaskSource, include_views: bool = False) -> Snapshot:
    return build_snapshot_from_data(
        tasks=source.get_tasks(),
        projects=source.get_projects(),
        views=source.get_saved_views() if include_views else None,
    )


def open_source(settings: Settings, remote: bool) -> TaskSource:
    if remote:
        if not settings.backend_configured:
            raise BackendNotConfigured("Backend URL and API key are required.")
        return BackendClient(
            base_url=settings.backend_url or "",
            api_key=settings.api_key or "",
            access_token=settings.access_token,
            user_id=settings.user_id,
        )
    return LocalStore(settings.data_dir, user_id=settings.user_id)
