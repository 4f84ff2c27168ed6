"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with TASKTRACKER_ prefix
(or a local .env file).

Learn: There is deliberately no module-level ``settings`` singleton and no
default signing secret. create_app() receives a Settings instance, and
building one without TASKTRACKER_JWT_SECRET fails validation, so the
server refuses to start instead of signing tokens with a known key.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Placeholders seen in tutorials and sample .env files.
WEAK_SECRETS = frozenset(
    {
        "secret",
        "changeme",
        "change-me",
        "change-me-in-production",
        "your-secret-key",
    }
)
MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """All app configuration. Set via TASKTRACKER_* env vars."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./tasktracker.db"
    db_pool_size: int = 5

    # Auth
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Argon2id cost parameters (argon2-cffi defaults)
    argon2_time_cost: int = 3
    argon2_memory_cost: int = 65536  # KiB
    argon2_parallelism: int = 4

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_prefix="TASKTRACKER_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("jwt_secret")
    @classmethod
    def secret_is_strong(cls, v: str) -> str:
        if v.strip().lower() in WEAK_SECRETS:
            raise ValueError(
                "TASKTRACKER_JWT_SECRET is a well-known placeholder. Generate one with: "
                'python -c "import secrets; print(secrets.token_urlsafe(32))"'
            )
        if len(v) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"TASKTRACKER_JWT_SECRET must be at least {MIN_SECRET_LENGTH} characters"
            )
        return v

    @field_validator("access_token_expire_minutes", "db_pool_size")
    @classmethod
    def positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v


@lru_cache
def get_settings() -> Settings:
    """Load settings from the environment once per process."""
    return Settings()
