"""Password hashing utilities.

Argon2id hashing for the credential layer that sits in front of the
paginated resources (e.g. seeding or verifying user records).
"""

from __future__ import annotations

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError


class PasswordHasher:
    """argon2id hasher with rehash detection.

    Seeding the records a paginated ``/users`` listing serves::

        hasher = PasswordHasher()
        store.add({"id": 1, "email": "ann@example.com",
                   "password": hasher.hash("s3cret")})

    and checking a login against a stored hash::

        if hasher.verify(row.password, attempt) and hasher.needs_rehash(row.password):
            row.password = hasher.hash(attempt)
    """

    def __init__(
        self,
        *,
        time_cost: int | None = None,
        memory_cost: int | None = None,
        parallelism: int | None = None,
    ) -> None:
        """
        Args:
            time_cost: argon2 iterations (library default when omitted).
            memory_cost: argon2 memory in KiB (library default when omitted).
            parallelism: argon2 lanes (library default when omitted).
        """
        params = {
            "time_cost": time_cost,
            "memory_cost": memory_cost,
            "parallelism": parallelism,
        }
        self._argon2 = Argon2Hasher(**{k: v for k, v in params.items() if v is not None})

    def hash(self, password: str) -> str:
        """Hash a plaintext password."""
        return self._argon2.hash(password)

    def verify(self, hashed_password: str, password: str) -> bool:
        """Return True if *password* matches *hashed_password*.

        A mismatch or a malformed hash returns False instead of raising.
        """
        try:
            return self._argon2.verify(hashed_password, password)
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, hashed_password: str) -> bool:
        """Check if the hash was produced with outdated parameters."""
        try:
            return self._argon2.check_needs_rehash(hashed_password)
        except InvalidHashError:
            return True


__all__: list[str] = ["PasswordHasher"]
