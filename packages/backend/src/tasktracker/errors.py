"""Error taxonomy and the handlers that render it.

Learn: Every failure the API can report is one of four kinds, each with
exactly one HTTP status:

- AuthenticationFailure → 401 (missing/bad/expired token, wrong password)
- NotFound              → 404 (absent OR owned by someone else)
- ValidationFailure     → 400 (duplicate email, malformed input)
- StoreFailure          → 500 (database errors; detail is logged, never sent)

Services raise these; install_error_handlers() turns them into
``{"error": "<message>"}`` responses at the request boundary.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = structlog.get_logger()


class AppError(Exception):
    """Base for all errors that map to an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ─── 401 ─────────────────────────────────────────────────


class AuthenticationFailure(AppError):
    status_code = 401
    default_message = "Invalid credentials"


class MissingCredential(AuthenticationFailure):
    default_message = "Missing Authorization header"


class MalformedCredential(AuthenticationFailure):
    default_message = "Invalid token format"


class InvalidCredential(AuthenticationFailure):
    """Bad signature, garbled payload, or expired — deliberately one message."""

    default_message = "Invalid token"


class PrincipalNotFound(AuthenticationFailure):
    default_message = "User not found"


class InactiveUser(AuthenticationFailure):
    default_message = "Inactive user"


# ─── 404 / 400 / 500 ─────────────────────────────────────


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class ValidationFailure(AppError):
    status_code = 400
    default_message = "Invalid input"


class DuplicateEmailError(ValidationFailure):
    default_message = "Email already registered"


class StoreFailure(AppError):
    status_code = 500
    default_message = "Database error"


# ─── Rendering ───────────────────────────────────────────


def error_response(status_code: int, message: str) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code, content={"error": message}, headers=headers
    )


def _summarize(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid input"


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, StoreFailure):
        logger.error("store.failure", path=request.url.path, error=exc.message)
        return error_response(exc.status_code, StoreFailure.default_message)
    return error_response(exc.status_code, exc.message)


async def _validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return error_response(400, _summarize(exc))


async def _http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail))


async def _sqlalchemy_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "store.failure",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return error_response(500, StoreFailure.default_message)


async def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request.unhandled_error", path=request.url.path)
    return error_response(500, "Internal server error")


def install_error_handlers(app: FastAPI) -> None:
    """Register the handlers that map exceptions onto ``{"error": ...}``."""
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
