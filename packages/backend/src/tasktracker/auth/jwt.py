"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. The server
keeps no session table — a token is valid iff:
1. its HS256 signature verifies against the configured secret, AND
2. the current time is strictly before its ``exp`` claim.

Access tokens live 30 minutes by default and cannot be revoked early;
the short lifetime is what bounds a leaked token's value.

Both classes take an optional ``now`` so expiry is testable without
sleeping or patching the clock.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog

from tasktracker.errors import InvalidCredential

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Principal:
    """Identity carried by a validated token. Lives for one request."""

    subject: str
    expires_at: datetime


class TokenIssuer:
    """Signs access tokens for a subject (the user's email)."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_minutes: int = 30,
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl = timedelta(minutes=expires_minutes)

    @classmethod
    def from_settings(cls, settings) -> "TokenIssuer":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_minutes=settings.access_token_expire_minutes,
        )

    def issue(self, subject: str, now: Optional[datetime] = None) -> str:
        """Create a JWT access token valid for ``ttl`` from ``now``."""
        issued_at = now or _utcnow()
        payload = {
            "sub": subject,
            "iat": issued_at.timestamp(),
            "exp": (issued_at + self.ttl).timestamp(),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)


class TokenValidator:
    """Verifies tokens produced by TokenIssuer."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings) -> "TokenValidator":
        return cls(secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)

    def validate(self, token: str, now: Optional[datetime] = None) -> Principal:
        """Verify and decode a JWT token.

        Returns the Principal on success.
        Raises InvalidCredential on any failure — tampered, garbled and
        expired tokens all look the same to the caller.
        """
        try:
            # Expiry is checked below against the injectable clock.
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={
                    "require": ["sub", "exp"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            logger.debug("token.rejected", reason=str(e))
            raise InvalidCredential()

        subject = payload.get("sub")
        exp = payload.get("exp")
        if not isinstance(subject, str) or not subject:
            logger.debug("token.rejected", reason="bad subject")
            raise InvalidCredential()
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            logger.debug("token.rejected", reason="bad exp")
            raise InvalidCredential()

        current = (now or _utcnow()).timestamp()
        if not current < exp:
            logger.debug("token.rejected", reason="expired", subject=subject)
            raise InvalidCredential()

        return Principal(
            subject=subject,
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
