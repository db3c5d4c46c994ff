from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

TASKS_FILE = "tasks.json"
PROJECTS_FILE = "projects.json"
VIEWS_FILE = "saved_views.json"
COMMENTS_FILE = "comments.json"


class StoreError(RuntimeError):
    pass


def ensure_dir(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(path: Path, data: Any) -> None:
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False))


def read_json(path: Path) -> Any:
    return json.loads(path.read_text())


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LocalStore:
    """Rows kept as JSON arrays in a directory, one file per table."""

    def __init__(self, base_dir: Path, user_id: str | None = None) -> None:
        self.base_dir = base_dir
        self.user_id = user_id

    def close(self) -> None:
        pass

    def _rows(self, filename: str) -> list[dict[str, Any]]:
        path = self.base_dir / filename
        if not path.exists():
            return []
        try:
            data = read_json(path)
        except json.JSONDecodeError as exc:
            raise StoreError(f"{path} is not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise StoreError(f"{path} must hold a JSON array")
        return [row for row in data if isinstance(row, dict)]

    def _save(self, filename: str, rows: list[dict[str, Any]]) -> None:
        write_json(ensure_dir(self.base_dir) / filename, rows)

    def _insert(self, filename: str, row: dict[str, Any]) -> dict[str, Any]:
        rows = self._rows(filename)
        record = {"id": str(uuid.uuid4()), "created_at": _now(), **row}
        if self.user_id and "user_id" not in record:
            record["user_id"] = self.user_id
        rows.append(record)
        self._save(filename, rows)
        return record

    def _update(self, filename: str, ids: set[str], updates: dict[str, Any]) -> list[dict[str, Any]]:
        rows = self._rows(filename)
        changed = []
        for row in rows:
            if str(row.get("id")) in ids:
                row.update(updates)
                row["updated_at"] = _now()
                changed.append(row)
        self._save(filename, rows)
        return changed

    def _delete(self, filename: str, ids: set[str]) -> None:
        rows = self._rows(filename)
        self._save(filename, [row for row in rows if str(row.get("id")) not in ids])

    def get_tasks(self) -> list[dict[str, Any]]:
        rows = self._rows(TASKS_FILE)
        return sorted(rows, key=lambda row: row.get("created_at") or "", reverse=True)

    def get_projects(self) -> list[dict[str, Any]]:
        return self._rows(PROJECTS_FILE)

    def get_saved_views(self) -> list[dict[str, Any]]:
        rows = self._rows(VIEWS_FILE)
        return sorted(rows, key=lambda row: row.get("name") or "")

    def get_comments(self, task_id: str) -> list[dict[str, Any]]:
        rows = [row for row in self._rows(COMMENTS_FILE) if str(row.get("task_id")) == task_id]
        return sorted(rows, key=lambda row: row.get("created_at") or "")

    def create_task(self, task: dict[str, Any]) -> dict[str, Any]:
        return self._insert(TASKS_FILE, {"title": "", **task})

    def update_task(self, task_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        changed = self._update(TASKS_FILE, {task_id}, updates)
        if not changed:
            raise KeyError(task_id)
        return changed[0]

    def update_tasks(self, ids: list[str], updates: dict[str, Any]) -> None:
        self._update(TASKS_FILE, set(ids), updates)

    def delete_task(self, task_id: str) -> None:
        self._delete(TASKS_FILE, {task_id})

    def delete_tasks(self, ids: list[str]) -> None:
        self._delete(TASKS_FILE, set(ids))

    def create_project(self, project: dict[str, Any]) -> dict[str, Any]:
        return self._insert(PROJECTS_FILE, project)

    def create_view(self, view: dict[str, Any]) -> dict[str, Any]:
        return self._insert(VIEWS_FILE, view)

    def delete_view(self, view_id: str) -> None:
        self._delete(VIEWS_FILE, {view_id})

    def create_comment(self, task_id: str, content: str) -> dict[str, Any]:
        return self._insert(COMMENTS_FILE, {"task_id": task_id, "content": content})

    def delete_comment(self, comment_id: str) -> None:
        self._delete(COMMENTS_FILE, {comment_id})
