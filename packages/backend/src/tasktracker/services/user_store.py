"""User store — persistence for accounts, keyed by unique email.

Learn: Email uniqueness is enforced by the database's UNIQUE constraint,
not by a "SELECT then INSERT" check. Two concurrent registrations for the
same email both reach INSERT; the database accepts one and the other gets
an IntegrityError, which we translate into DuplicateEmailError. A pre-check
would only narrow the race window, never close it.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.db.models import User
from tasktracker.errors import DuplicateEmailError


class UserStore:
    """Lookup and creation of User rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def get(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def insert(self, email: str, password_hash: str) -> User:
        """Create a user. Raises DuplicateEmailError if the email is taken."""
        user = User(email=email, password_hash=password_hash, is_active=True)
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateEmailError()
        await self.db.refresh(user)
        return user

    async def update_password_hash(self, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        await self.db.commit()
