"""Test fixtures — a fresh app and SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own Settings pointing at a SQLite file in tmp_path,
   so tests are isolated without any rollback tricks.
2. create_app(settings) builds the real app — real auth, real error
   handlers. httpx's ASGITransport doesn't run the lifespan, so the
   fixture creates the schema itself.
3. Argon2 cost parameters are turned down; hashing at production cost
   would dominate the test run.
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tasktracker.config import Settings
from tasktracker.db.engine import init_models
from tasktracker.main import create_app

TEST_SECRET = "test-secret-0123456789-abcdefghijklmnopqrstuvwxyz"
OTHER_SECRET = "another-secret-9876543210-zyxwvutsrqponmlkjihgfedcba"


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        jwt_secret=TEST_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        argon2_time_cost=1,
        argon2_memory_cost=8,
        argon2_parallelism=1,
        log_level="WARNING",
    )


@pytest_asyncio.fixture()
async def app(settings):
    app = create_app(settings)
    await init_models(app.state.engine)
    yield app
    await app.state.engine.dispose()


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def db_session(app):
    """A separate session for arranging and inspecting rows directly."""
    async with app.state.session_factory() as session:
        yield session


@pytest.fixture()
def new_email():
    return lambda prefix="user": f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


@pytest.fixture()
def login_as(client, new_email):
    """Register (if needed) and log in; returns ``(email, auth_headers)``.

    Learn: Most task tests need one or two real users with real tokens,
    so this wraps the register → login round trip.
    """

    async def _login_as(email: str | None = None, password: str = "pw123"):
        email = email or new_email()
        r = await client.post("/users", json={"email": email, "password": password})
        assert r.status_code in (200, 400), r.text
        r = await client.post("/token", json={"username": email, "password": password})
        assert r.status_code == 200, r.text
        return email, {"Authorization": f"Bearer {r.json()['access_token']}"}

    return _login_as
