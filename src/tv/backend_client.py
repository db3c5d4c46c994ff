from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class BackendNotConfigured(RuntimeError):
    pass


def _in_list(ids: list[str]) -> str:
    return "in.(" + ",".join(ids) + ")"


def _retry_delay(retry_after: str | None, fallback: float) -> float:
    # Retry-After is either delay-seconds or an HTTP-date.
    if not retry_after:
        return fallback
    try:
        return max(float(retry_after), 0.0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(retry_after)
    except (TypeError, ValueError):
        return fallback
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max((when - datetime.now(timezone.utc)).total_seconds(), 0.0)


class BackendClient:
    """Thin client for the hosted table store's REST interface.

    Row-level security lives on the server; ``user_id`` is only used to scope
    reads and stamp inserts the way the web app does.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        user_id: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url or not api_key:
            raise BackendNotConfigured("Backend URL and API key are required.")
        self.base_url = base_url.rstrip("/") + "/rest/v1"
        self.user_id = user_id
        self.headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {access_token or api_key}",
        }
        self.client = httpx.Client(timeout=30.0, headers=self.headers, transport=transport)

    def close(self) -> None:
        self.client.close()

    def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        backoff = 1.0
        for attempt in range(5):
            response = self.client.request(method, url, params=params, json=json, headers=headers)
            if response.status_code != 429:
                response.raise_for_status()
                return response
            wait = _retry_delay(response.headers.get("Retry-After"), backoff)
            logger.debug("Rate limited on %s %s, retrying in %.1fs (attempt %d)", method, path, wait, attempt + 1)
            time.sleep(wait)
            backoff *= 2
        response.raise_for_status()
        return response

    def _select(self, table: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        response = self._request("GET", f"/{table}", params={"select": "*", **params})
        payload = response.json()
        return payload if isinstance(payload, list) else []

    def _owned(self) -> dict[str, str]:
        return {"user_id": f"eq.{self.user_id}"} if self.user_id else {}

    def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        if self.user_id and "user_id" not in row:
            row = {**row, "user_id": self.user_id}
        response = self._request(
            "POST",
            f"/{table}",
            json=[row],
            headers={"Prefer": "return=representation"},
        )
        payload = response.json()
        return payload[0] if isinstance(payload, list) and payload else {}

    def _update(self, table: str, id_filter: str, updates: dict[str, Any]) -> list[dict[str, Any]]:
        response = self._request(
            "PATCH",
            f"/{table}",
            params={"id": id_filter},
            json=updates,
            headers={"Prefer": "return=representation"},
        )
        payload = response.json()
        return payload if isinstance(payload, list) else []

    def _delete(self, table: str, id_filter: str) -> None:
        self._request("DELETE", f"/{table}", params={"id": id_filter})

    def get_tasks(self) -> list[dict[str, Any]]:
        return self._select("tasks", {**self._owned(), "order": "created_at.desc"})

    def get_projects(self) -> list[dict[str, Any]]:
        return self._select("projects", {**self._owned(), "order": "name.asc"})

    def get_saved_views(self) -> list[dict[str, Any]]:
        return self._select("saved_views", {**self._owned(), "order": "name.asc"})

    def get_comments(self, task_id: str) -> list[dict[str, Any]]:
        return self._select("task_comments", {"task_id": f"eq.{task_id}", "order": "created_at.asc"})

    def create_task(self, task: dict[str, Any]) -> dict[str, Any]:
        return self._insert("tasks", {"title": "", **task})

    def update_task(self, task_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        rows = self._update("tasks", f"eq.{task_id}", updates)
        return rows[0] if rows else {}

    def update_tasks(self, ids: list[str], updates: dict[str, Any]) -> None:
        if ids:
            self._update("tasks", _in_list(ids), updates)

    def delete_task(self, task_id: str) -> None:
        self._delete("tasks", f"eq.{task_id}")

    def delete_tasks(self, ids: list[str]) -> None:
        if ids:
            self._delete("tasks", _in_list(ids))

    def create_project(self, project: dict[str, Any]) -> dict[str, Any]:
        return self._insert("projects", project)

    def create_view(self, view: dict[str, Any]) -> dict[str, Any]:
        return self._insert("saved_views", view)

    def delete_view(self, view_id: str) -> None:
        self._delete("saved_views", f"eq.{view_id}")

    def create_comment(self, task_id: str, content: str) -> dict[str, Any]:
        return self._insert("task_comments", {"task_id": task_id, "content": content})

    def delete_comment(self, comment_id: str) -> None:
        self._delete("task_comments", f"eq.{comment_id}")
