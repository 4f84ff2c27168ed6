"""Cache policy for private responses.

Learn: A token response carries a credential, and anything answered for
an authenticated caller is one user's data. Neither may be kept by a
browser or a shared proxy, so those responses get ``no-store``. They
also vary by ``Authorization``, so no cache can replay one caller's
answer to another. Public endpoints (/health, /docs) keep whatever
caching the handler chose.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

# Paths whose responses are private even when no token was sent
# (login returns a token; registration echoes the account).
PRIVATE_PREFIXES = ("/token", "/users", "/tasks")


def is_private(request: Request) -> bool:
    if "authorization" in request.headers:
        return True
    path = request.url.path
    return any(path == p or path.startswith(p + "/") for p in PRIVATE_PREFIXES)


def _add_vary(response: Response, field: str) -> None:
    current = [v.strip() for v in response.headers.get("Vary", "").split(",") if v.strip()]
    if field.lower() not in (v.lower() for v in current):
        current.append(field)
    response.headers["Vary"] = ", ".join(current)


class PrivateResponseMiddleware(BaseHTTPMiddleware):
    """Mark credential-bearing and per-user responses as uncacheable."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        if is_private(request):
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"
            _add_vary(response, "Authorization")
        return response
