"""Request-boundary authentication.

Learn: AuthGuard.authenticate() is the one place a request becomes a user.
It runs three steps, each with its own failure:

1. Extract  — ``Authorization: Bearer <token>``
              absent → MissingCredential, wrong shape → MalformedCredential
2. Verify   — signature + expiry via TokenValidator → InvalidCredential
3. Resolve  — token subject (email) → User row
              gone → PrincipalNotFound, deactivated → InactiveUser

All of these are AuthenticationFailure (401). Route handlers never parse
headers themselves; they depend on get_current_user, which calls the
guard with the raw request headers and the request's UserStore.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.jwt import TokenValidator
from tasktracker.db.engine import get_db
from tasktracker.errors import (
    InactiveUser,
    MalformedCredential,
    MissingCredential,
    PrincipalNotFound,
)
from tasktracker.services.user_store import UserStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class AuthenticatedUser:
    """The authenticated identity for the current request.

    Learn: This is the unified auth context. It is immutable and built
    fresh per request — all downstream code uses ``id`` to scope queries.
    """

    id: int
    email: str
    is_active: bool
    token_expires_at: datetime


def extract_bearer_token(headers: Mapping[str, str]) -> str:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    header: Optional[str] = headers.get("authorization")
    if header is None:
        header = headers.get("Authorization")
    if header is None:
        raise MissingCredential()

    # Exactly "<scheme> <token>": one separating space, no padding anywhere.
    scheme, _, token = header.partition(" ")
    if (
        scheme.lower() != "bearer"
        or not token
        or token != token.strip()
        or " " in token
    ):
        raise MalformedCredential()
    return token


class AuthGuard:
    """Turns request headers into an AuthenticatedUser, or raises."""

    def __init__(self, validator: TokenValidator, enforce_active: bool = True):
        self.validator = validator
        self.enforce_active = enforce_active

    async def authenticate(
        self,
        headers: Mapping[str, str],
        users: UserStore,
        now: Optional[datetime] = None,
    ) -> AuthenticatedUser:
        token = extract_bearer_token(headers)
        principal = self.validator.validate(token, now=now)

        user = await users.find_by_email(principal.subject)
        if user is None:
            logger.info("auth.principal_not_found")
            raise PrincipalNotFound()
        if self.enforce_active and not user.is_active:
            logger.info("auth.inactive_user", user_id=user.id)
            raise InactiveUser()

        return AuthenticatedUser(
            id=user.id,
            email=user.email,
            is_active=user.is_active,
            token_expires_at=principal.expires_at,
        )


def get_auth_guard(request: Request) -> AuthGuard:
    return request.app.state.auth_guard


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
    guard: AuthGuard = Depends(get_auth_guard),
) -> AuthenticatedUser:
    """FastAPI dependency for every protected route (401 if no valid auth)."""
    user = await guard.authenticate(request.headers, UserStore(db))
    structlog.contextvars.bind_contextvars(user_id=user.id)
    return user
