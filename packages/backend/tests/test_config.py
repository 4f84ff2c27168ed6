"""Settings tests — the signing secret is mandatory and must not be a placeholder."""

import pytest
from pydantic import ValidationError

from tasktracker.config import Settings
from tasktracker.main import create_app

from conftest import TEST_SECRET


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("TASKTRACKER_JWT_SECRET", raising=False)


def test_missing_secret_refuses_to_load():
    with pytest.raises(ValidationError) as exc:
        Settings(_env_file=None)
    assert "jwt_secret" in str(exc.value)


@pytest.mark.parametrize("secret", ["secret", "change-me-in-production", "CHANGEME"])
def test_placeholder_secret_rejected(secret):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_secret=secret)


def test_short_secret_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_secret="a" * 31)


def test_secret_from_environment(monkeypatch):
    monkeypatch.setenv("TASKTRACKER_JWT_SECRET", TEST_SECRET)
    monkeypatch.setenv("TASKTRACKER_ACCESS_TOKEN_EXPIRE_MINUTES", "15")
    settings = Settings(_env_file=None)
    assert settings.jwt_secret == TEST_SECRET
    assert settings.access_token_expire_minutes == 15


def test_defaults():
    settings = Settings(_env_file=None, jwt_secret=TEST_SECRET)
    assert settings.access_token_expire_minutes == 30
    assert settings.db_pool_size == 5
    assert settings.jwt_algorithm == "HS256"
    assert settings.database_url.startswith("sqlite+aiosqlite://")


def test_nonpositive_expiry_rejected():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, jwt_secret=TEST_SECRET, access_token_expire_minutes=0)


def test_app_wires_components_from_settings(settings):
    app = create_app(settings)
    assert app.state.settings is settings
    assert app.state.token_issuer.secret == TEST_SECRET
    assert app.state.auth_guard.validator.secret == TEST_SECRET
    assert app.state.engine.sync_engine.pool.size() == 5
