import json

import httpx
import pytest

from tv.backend_client import BackendClient, BackendNotConfigured


def _client(handler, **kwargs) -> BackendClient:
    return BackendClient(
        base_url="https://example.supabase.co/",
        api_key="anon-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_requires_url_and_key():
    with pytest.raises(BackendNotConfigured):
        BackendClient(base_url="", api_key="anon-key")


def test_get_tasks_scopes_and_orders():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": "t1", "title": "One"}])

    client = _client(handler, access_token="user-jwt", user_id="u1")
    rows = client.get_tasks()
    client.close()

    assert rows == [{"id": "t1", "title": "One"}]
    request = seen[0]
    assert request.url.path == "/rest/v1/tasks"
    assert request.url.params["select"] == "*"
    assert request.url.params["user_id"] == "eq.u1"
    assert request.url.params["order"] == "created_at.desc"
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer user-jwt"


def test_bulk_update_uses_in_filter():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    client = _client(handler)
    client.update_tasks(["a", "b"], {"priority": "urgent"})
    client.update_tasks([], {"priority": "low"})

    assert len(seen) == 1
    assert seen[0].method == "PATCH"
    assert seen[0].url.params["id"] == "in.(a,b)"
    assert json.loads(seen[0].content) == {"priority": "urgent"}


def test_create_view_stamps_user_and_returns_row():
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        assert request.headers["Prefer"] == "return=representation"
        return httpx.Response(201, json=[{"id": "v1", **body[0]}])

    client = _client(handler, user_id="u1")
    created = client.create_view({"name": "Mine", "filters": {}, "sort_by": "title", "sort_order": "asc"})

    assert created["id"] == "v1"
    assert created["user_id"] == "u1"


def test_retries_after_rate_limit(monkeypatch):
    monkeypatch.setattr("tv.backend_client.time.sleep", lambda seconds: None)
    responses = [
        httpx.Response(429, headers={"Retry-After": "0"}),
        httpx.Response(200, json=[{"id": "p1", "name": "Alpha"}]),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    assert _client(handler).get_projects() == [{"id": "p1", "name": "Alpha"}]


def test_http_errors_propagate():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "JWT expired"})

    with pytest.raises(httpx.HTTPStatusError):
        _client(handler).delete_task("t1")


def test_retry_after_accepts_http_date(monkeypatch):
    waits = []
    monkeypatch.setattr("tv.backend_client.time.sleep", waits.append)
    responses = [
        httpx.Response(429, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"}),
        httpx.Response(429, headers={"Retry-After": "soon"}),
        httpx.Response(200, json=[]),
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        return responses.pop(0)

    assert _client(handler).get_tasks() == []
    # A date in the past means retry now; an unreadable value falls back to backoff.
    assert waits == [0.0, 2.0]
