"""Password hashing utilities.

Learn: Uses Argon2id (argon2-cffi) — a memory-hard algorithm, so brute
forcing leaked hashes costs RAM as well as CPU. Every hash() call draws a
fresh random salt, and the result is a self-describing PHC string:

    $argon2id$v=19$m=65536,t=3,p=4$<salt>$<digest>

verify() reads the parameters back out of that string, so cost settings
can change without invalidating stored hashes.

Legacy bcrypt hashes ($2b$...) are still verified, and needs_rehash()
flags them (and Argon2 hashes with outdated parameters) so the login
flow can upgrade them transparently.
"""

import bcrypt
from argon2 import PasswordHasher as _Argon2
from argon2.exceptions import InvalidHashError, VerificationError


class PasswordHasher:
    """Salted Argon2id hashing with constant-time verification."""

    def __init__(
        self,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ):
        self._argon2 = _Argon2(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )
        # Fixed target for verify_dummy, hashed once at construction.
        self._dummy_hash = self.hash("dummy-password-not-used-for-auth")

    @classmethod
    def from_settings(cls, settings) -> "PasswordHasher":
        return cls(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        )

    def hash(self, password: str | bytes) -> str:
        """Hash a password with a fresh random salt."""
        return self._argon2.hash(password)

    def verify(self, password: str | bytes, stored: str) -> bool:
        """Check ``password`` against a stored hash.

        Never raises for bad input: a corrupt or unrecognized stored hash
        is indistinguishable from a wrong password to the caller.
        """
        if not stored:
            return False
        if _is_bcrypt(stored):
            return _verify_bcrypt(password, stored)
        try:
            return self._argon2.verify(stored, password)
        except (VerificationError, InvalidHashError, ValueError):
            # ValueError: argon2 refuses non-ASCII hash strings before parsing.
            return False

    def verify_dummy(self, password: str | bytes) -> None:
        """Spend one verification's worth of work when there is no user."""
        self.verify(password, self._dummy_hash)

    def needs_rehash(self, stored: str) -> bool:
        """True if ``stored`` should be replaced by a fresh Argon2id hash."""
        if _is_bcrypt(stored):
            return True
        try:
            return self._argon2.check_needs_rehash(stored)
        except (InvalidHashError, ValueError):
            return True


def _is_bcrypt(stored: str) -> bool:
    return stored.startswith(("$2a$", "$2b$", "$2y$"))


def _verify_bcrypt(password: str | bytes, stored: str) -> bool:
    pw_bytes = password.encode("utf-8") if isinstance(password, str) else password
    try:
        # bcrypt only looks at the first 72 bytes.
        return bcrypt.checkpw(pw_bytes[:72], stored.encode("utf-8"))
    except (ValueError, TypeError):
        return False
