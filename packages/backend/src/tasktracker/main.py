"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (schema creation, engine
disposal). Middleware, CORS, error handlers and routers all registered here.

Everything process-wide is built once from Settings and kept on
``app.state``: the engine and session factory, the password hasher, the
token issuer and the AuthGuard. Nothing reads the environment at request
time. There is no module-level ``app``: run with

    uvicorn --factory tasktracker.main:create_app

so a missing TASKTRACKER_JWT_SECRET stops startup with a validation error.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tasktracker import __version__
from tasktracker.api import api_router
from tasktracker.auth.dependencies import AuthGuard
from tasktracker.auth.jwt import TokenIssuer, TokenValidator
from tasktracker.auth.password import PasswordHasher
from tasktracker.config import Settings, get_settings
from tasktracker.db.engine import build_engine, build_session_factory, init_models
from tasktracker.errors import install_error_handlers
from tasktracker.logging_setup import configure_logging
from tasktracker.middleware.request_id import RequestIdMiddleware
from tasktracker.middleware.cache_policy import PrivateResponseMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    """
    settings: Settings = app.state.settings
    logger.info(
        "tasktracker.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    await init_models(app.state.engine)
    logger.info("tasktracker.schema_ready")

    yield

    logger.info("tasktracker.shutdown")
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Task Tracker",
        description="Task-tracking backend with per-user ownership of tasks",
        version=__version__,
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.password_hasher = PasswordHasher.from_settings(settings)
    app.state.token_issuer = TokenIssuer.from_settings(settings)
    app.state.auth_guard = AuthGuard(TokenValidator.from_settings(settings))

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → PrivateResponse → CORS → handler

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(PrivateResponseMiddleware)
    app.add_middleware(RequestIdMiddleware)

    install_error_handlers(app)
    app.include_router(api_router)

    return app
