"""
auth/passwords.py -- bcrypt password hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

The cost factor comes from Settings.bcrypt_rounds and is fixed for the life of
the process. Nothing in a request can influence it.

Layer rule: no imports from api/, web/, posts/, or client/.
"""

from __future__ import annotations

import bcrypt

# bcrypt only reads the first 72 bytes; bcrypt 5.x raises instead of truncating.
BCRYPT_MAX_BYTES = 72


def _secret_bytes(plain: str) -> bytes:
    return plain.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """One-way adaptive hashing with a fixed work factor.

    Usage:
        hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
        hashed = hasher.hash("Secret1!")
        hasher.verify("Secret1!", hashed)   # True
    """

    def __init__(self, rounds: int = 10) -> None:
        self.rounds = rounds
        # Timing equalization: computed once so the first unknown-email login
        # is not measurably slower than later ones.
        self._dummy_hash = self.hash("helpboard_timing_dummy")

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password.

        Only the first 72 bytes of the UTF-8 encoding are hashed, so two
        passwords sharing that prefix verify against each other.
        """
        return bcrypt.hashpw(_secret_bytes(plain), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Return True if the plaintext password matches the bcrypt hash.

        A corrupt or non-bcrypt hash is a mismatch, not an error.
        """
        try:
            return bcrypt.checkpw(_secret_bytes(plain), hashed.encode("utf-8"))
        except ValueError:
            return False

    def dummy_verify(self, plain: str) -> None:
        """Burn one bcrypt comparison. Call when the account does not exist."""
        self.verify(plain, self._dummy_hash)
