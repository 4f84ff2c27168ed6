"""CLI tests — commands against a mocked backend.

Learn: The CLI only talks HTTP, so the tests swap ``_client`` for one
backed by httpx.MockTransport and assert on the requests it sends.
"""

import json

import httpx
import pytest
from click.testing import CliRunner

from tasktracker.cli import main as cli


@pytest.fixture
def backend(monkeypatch):
    """Install a fake backend; returns the list of requests it received."""
    seen: list[httpx.Request] = []
    routes = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        status, body = routes.get((request.method, request.url.path), (404, {"error": "Not found"}))
        return httpx.Response(status, json=body)

    def fake_client(token=None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return httpx.AsyncClient(
            base_url="http://api.test", headers=headers, transport=httpx.MockTransport(handler)
        )

    monkeypatch.setattr(cli, "_client", fake_client)
    monkeypatch.delenv("TASKTRACKER_TOKEN", raising=False)
    return seen, routes


def test_register(backend):
    seen, routes = backend
    routes[("POST", "/users")] = (200, {"id": 1, "email": "alice@x.com", "is_active": True})

    result = CliRunner().invoke(cli.main, ["register", "alice@x.com", "--password", "pw123"])

    assert result.exit_code == 0, result.output
    assert "Registered alice@x.com (id 1)" in result.output
    assert json.loads(seen[0].content) == {"email": "alice@x.com", "password": "pw123"}


def test_login_quiet_prints_only_token(backend):
    _, routes = backend
    routes[("POST", "/token")] = (200, {"access_token": "abc.def.ghi", "token_type": "bearer"})

    result = CliRunner().invoke(cli.main, ["login", "alice@x.com", "--password", "pw123", "-q"])

    assert result.exit_code == 0
    assert result.output == "abc.def.ghi\n"


def test_login_failure_exits_nonzero(backend):
    _, routes = backend
    routes[("POST", "/token")] = (401, {"error": "Invalid credentials"})

    result = CliRunner().invoke(cli.main, ["login", "alice@x.com", "--password", "bad"])

    assert result.exit_code == 1
    assert "Invalid credentials (HTTP 401)" in result.output


def test_tasks_list(backend):
    seen, routes = backend
    routes[("GET", "/tasks")] = (
        200,
        [{"id": 3, "title": "buy milk", "description": None, "completed": True}],
    )

    result = CliRunner().invoke(cli.main, ["tasks", "list", "--token", "tok"])

    assert result.exit_code == 0, result.output
    assert "buy milk" in result.output
    assert seen[0].headers["Authorization"] == "Bearer tok"
    assert seen[0].url.params["limit"] == "100"


def test_tasks_add_done_rm(backend, monkeypatch):
    seen, routes = backend
    monkeypatch.setenv("TASKTRACKER_TOKEN", "tok")
    routes[("POST", "/tasks")] = (200, {"id": 3})
    routes[("PUT", "/tasks/3")] = (200, {"id": 3})
    routes[("DELETE", "/tasks/3")] = (200, {"ok": True})
    runner = CliRunner()

    assert runner.invoke(cli.main, ["tasks", "add", "buy milk"]).exit_code == 0
    assert runner.invoke(cli.main, ["tasks", "done", "3"]).exit_code == 0
    assert runner.invoke(cli.main, ["tasks", "rm", "3"]).exit_code == 0

    assert [(r.method, r.url.path) for r in seen] == [
        ("POST", "/tasks"),
        ("PUT", "/tasks/3"),
        ("DELETE", "/tasks/3"),
    ]
    assert json.loads(seen[1].content) == {"completed": True}


def test_tasks_without_token(backend):
    result = CliRunner().invoke(cli.main, ["tasks", "list"])
    assert result.exit_code == 1
    assert "--token required" in result.output


def test_task_not_found(backend):
    result = CliRunner().invoke(cli.main, ["tasks", "rm", "99", "--token", "tok"])
    assert result.exit_code == 1
    assert "Not found (HTTP 404)" in result.output


@pytest.mark.parametrize(
    ("content", "expected"),
    [
        (b'["upstream", "down"]', '["upstream", "down"]'),
        (b'"bad gateway"', '"bad gateway"'),
        (b"<html>502</html>", "<html>502</html>"),
    ],
)
def test_error_body_that_is_not_an_object(backend, monkeypatch, content, expected):
    def fake_client(token=None):
        transport = httpx.MockTransport(lambda request: httpx.Response(502, content=content))
        return httpx.AsyncClient(base_url="http://api.test", transport=transport)

    monkeypatch.setattr(cli, "_client", fake_client)
    result = CliRunner().invoke(cli.main, ["tasks", "list", "--token", "tok"])

    assert result.exit_code == 1
    assert f"{expected} (HTTP 502)" in result.output
