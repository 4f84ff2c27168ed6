"""Auth service — registration and login.

Learn: Login failures are deliberately uniform. Unknown email, wrong
password, corrupt stored hash and deactivated account all raise the same
AuthenticationFailure("Invalid credentials"), and an unknown email still
pays for one Argon2 verification against a dummy hash so response timing
doesn't reveal which emails are registered.
"""

from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.jwt import TokenIssuer
from tasktracker.auth.password import PasswordHasher
from tasktracker.db.models import User
from tasktracker.errors import AuthenticationFailure
from tasktracker.services.user_store import UserStore

logger = structlog.get_logger()


class AuthService:
    """Business logic for account creation and token issuance."""

    def __init__(
        self,
        db: AsyncSession,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
    ):
        self.users = UserStore(db)
        self.hasher = hasher
        self.issuer = issuer

    async def register(self, email: str, password: str) -> User:
        """Create an account. Raises DuplicateEmailError if the email exists."""
        user = await self.users.insert(email, self.hasher.hash(password))
        logger.info("auth.registered", user_id=user.id)
        return user

    async def login(
        self, email: str, password: str, now: Optional[datetime] = None
    ) -> str:
        """Check credentials and return a fresh access token."""
        user = await self.users.find_by_email(email)
        if user is None:
            self.hasher.verify_dummy(password)
            logger.info("auth.login_failed", reason="unknown_email")
            raise AuthenticationFailure()

        if not self.hasher.verify(password, user.password_hash):
            logger.info("auth.login_failed", reason="bad_password", user_id=user.id)
            raise AuthenticationFailure()

        if not user.is_active:
            logger.info("auth.login_failed", reason="inactive", user_id=user.id)
            raise AuthenticationFailure()

        # Upgrade legacy bcrypt / outdated Argon2 parameters on successful login
        if self.hasher.needs_rehash(user.password_hash):
            await self.users.update_password_hash(user, self.hasher.hash(password))
            logger.info("auth.password_rehashed", user_id=user.id)

        logger.info("auth.login", user_id=user.id)
        return self.issuer.issue(user.email, now=now)
