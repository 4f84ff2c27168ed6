"""tasktracker CLI — run the server, manage your account and tasks.

Usage:
    tasktracker serve                          # Run the API with uvicorn
    tasktracker register alice@x.com           # Create an account
    tasktracker login alice@x.com              # Print an access token
    export TASKTRACKER_TOKEN=$(tasktracker login alice@x.com -q)
    tasktracker tasks list                     # Your tasks
    tasktracker tasks add "buy milk"           # Create a task
    tasktracker tasks done 3                   # Mark task 3 completed
    tasktracker tasks rm 3                     # Delete task 3
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import os
from typing import Optional

import click
import httpx

from tasktracker import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("TASKTRACKER_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the tasktracker backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop — normal CLI invocation
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


class ApiError(click.ClickException):
    """A non-2xx response; click prints it and exits 1."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"{message} (HTTP {status_code})")


def _check(resp: httpx.Response) -> dict | list:
    """Return the JSON body, or raise ApiError with the server's message."""
    if resp.is_success:
        return resp.json()
    try:
        body = resp.json()
    except ValueError:
        body = None
    message = body.get("error", resp.text) if isinstance(body, dict) else resp.text
    raise ApiError(resp.status_code, message)


def _require_token(token: Optional[str]) -> str:
    if not token:
        raise click.ClickException("--token required (or set TASKTRACKER_TOKEN env var)")
    return token


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        cells = [row.get(k) for _, k, _ in columns]
        line = "  ".join(
            ("—" if v is None else str(v))[:w].ljust(w)
            for v, (_, _, w) in zip(cells, columns)
        )
        click.echo(line)


token_option = click.option(
    "--token",
    envvar="TASKTRACKER_TOKEN",
    help="Access token (or set TASKTRACKER_TOKEN)",
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="tasktracker")
def main():
    """tasktracker — personal task tracking with token auth."""


@main.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", default=None, type=int, help="Port (default from settings)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    from tasktracker.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "tasktracker.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=True)
def register(email: str, password: str):
    """Create an account for EMAIL."""
    user = _run(_register_impl(email, password))
    click.secho(f"Registered {user['email']} (id {user['id']})", fg="green")


async def _register_impl(email: str, password: str) -> dict:
    async with _client() as c:
        return _check(await c.post("/users", json={"email": email, "password": password}))


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
@click.option("--quiet", "-q", is_flag=True, help="Print only the token")
def login(email: str, password: str, quiet: bool):
    """Log in as EMAIL and print an access token."""
    tokens = _run(_login_impl(email, password))
    if quiet:
        click.echo(tokens["access_token"])
        return
    click.secho("Logged in. Token (valid 30 minutes):", fg="green")
    click.echo(tokens["access_token"])


async def _login_impl(email: str, password: str) -> dict:
    async with _client() as c:
        return _check(await c.post("/token", json={"username": email, "password": password}))


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@main.group()
def tasks():
    """Manage your tasks."""


@tasks.command("list")
@token_option
@click.option("--skip", default=0, show_default=True)
@click.option("--limit", default=100, show_default=True)
def list_tasks(token: Optional[str], skip: int, limit: int):
    """List your tasks."""
    params = {"skip": skip, "limit": limit}
    rows = _run(_request("GET", "/tasks", _require_token(token), params=params))
    if not rows:
        click.echo("No tasks.")
        return
    for row in rows:
        row["done"] = "x" if row["completed"] else ""
    _print_table(
        rows,
        [("ID", "id", 6), ("DONE", "done", 4), ("TITLE", "title", 40), ("DESCRIPTION", "description", 30)],
    )


@tasks.command("add")
@token_option
@click.argument("title")
@click.option("--description", "-d", default=None, help="Longer description")
def add_task(token: Optional[str], title: str, description: Optional[str]):
    """Create a task called TITLE."""
    body = {"title": title, "description": description, "completed": False}
    task = _run(_request("POST", "/tasks", _require_token(token), json=body))
    click.secho(f"Task #{task['id']} created", fg="green")


@tasks.command("done")
@token_option
@click.argument("task_id", type=int)
def complete_task(token: Optional[str], task_id: int):
    """Mark task TASK_ID completed."""
    task = _run(_request("PUT", f"/tasks/{task_id}", _require_token(token), json={"completed": True}))
    click.secho(f"Task #{task['id']} completed", fg="green")


@tasks.command("rm")
@token_option
@click.argument("task_id", type=int)
def delete_task(token: Optional[str], task_id: int):
    """Delete task TASK_ID."""
    _run(_request("DELETE", f"/tasks/{task_id}", _require_token(token)))
    click.secho(f"Task #{task_id} deleted", fg="green")


async def _request(method: str, path: str, token: str, **kwargs) -> dict | list:
    async with _client(token) as c:
        return _check(await c.request(method, path, **kwargs))


if __name__ == "__main__":
    main()
