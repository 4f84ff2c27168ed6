"""Tests for middleware and error rendering — headers, request IDs, error shape.

Learn: Every response, including error responses, passes through the
same middleware stack, so the headers are checked on both. Database
failures are simulated by patching the service, since a real SQLite
file is hard to break on demand.
"""

import pytest
from sqlalchemy.exc import OperationalError

from tasktracker.services.task_service import TaskService


# ─── Cache policy ────────────────────────────────────────


@pytest.mark.asyncio
async def test_token_response_is_not_cacheable(client, new_email):
    email = new_email()
    await client.post("/users", json={"email": email, "password": "pw123"})

    ok = await client.post("/token", json={"username": email, "password": "pw123"})
    bad = await client.post("/token", json={"username": email, "password": "nope"})

    for r in (ok, bad):
        assert r.headers["Cache-Control"] == "no-store"
        assert r.headers["Pragma"] == "no-cache"
        assert "Authorization" in r.headers["Vary"]
        assert r.headers["X-Content-Type-Options"] == "nosniff"


@pytest.mark.asyncio
async def test_task_responses_are_not_cacheable(client, login_as):
    _, headers = await login_as()
    created = await client.post(
        "/tasks", json={"title": "x", "completed": False}, headers=headers
    )
    listed = await client.get("/tasks", headers=headers)
    anonymous = await client.get("/tasks")

    for r in (created, listed, anonymous):
        assert r.headers["Cache-Control"] == "no-store"
        assert "X-Request-ID" in r.headers


@pytest.mark.asyncio
async def test_vary_lists_authorization_once(client, login_as):
    _, headers = await login_as()
    r = await client.get("/tasks", headers={**headers, "Origin": "http://localhost:3000"})
    vary = [v.strip() for v in r.headers["Vary"].split(",")]
    assert "Authorization" in vary
    assert vary.count("Authorization") == 1


@pytest.mark.asyncio
async def test_public_health_is_left_cacheable(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert "Cache-Control" not in r.headers
    assert "Vary" not in r.headers


# ─── Request IDs ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/health")
    r2 = await client.get("/health")
    assert "X-Request-ID" in r1.headers
    assert "X-Request-ID" in r2.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get("/health", headers={"X-Request-ID": custom_id})
    assert r.headers["X-Request-ID"] == custom_id


# ─── Error shape ─────────────────────────────────────────


@pytest.mark.asyncio
async def test_unknown_route_uses_error_shape(client):
    r = await client.get("/nope")
    assert r.status_code == 404
    assert set(r.json()) == {"error"}


@pytest.mark.asyncio
async def test_invalid_json_body_is_400(client):
    r = await client.post(
        "/users", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert r.status_code == 400
    assert set(r.json()) == {"error"}


@pytest.mark.asyncio
async def test_non_integer_task_id_is_400(client, login_as):
    _, headers = await login_as()
    r = await client.get("/tasks/abc", headers=headers)
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_database_error_is_opaque(client, login_as, monkeypatch):
    _, headers = await login_as()

    async def broken(self, skip=0, limit=100):
        raise OperationalError("SELECT * FROM tasks", {}, Exception("disk I/O error"))

    monkeypatch.setattr(TaskService, "list_tasks", broken)

    r = await client.get("/tasks", headers=headers)
    assert r.status_code == 500
    assert r.json() == {"error": "Database error"}
    assert "disk" not in r.text
    assert "SELECT" not in r.text
