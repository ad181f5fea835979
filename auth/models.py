"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors posts/models.py
-- dataclasses own domain shape; stores and routes do the work.

Layer rule: no imports from api/, web/, posts/, or client/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A credential record.

    email is always stored normalized (trimmed, lowercase); the validator does
    the normalization before the record reaches the store. Uniqueness is the
    store's UNIQUE constraint, not a lookup performed beforehand.

    id is an opaque UUID hex string assigned by the store on insert.
    """

    email: str
    name: str
    hashed_password: str
    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def summary(self) -> UserSummary:
        return UserSummary(id=self.id or "", email=self.email, name=self.name)


@dataclass(frozen=True)
class UserSummary:
    """The public shape of a user -- what responses and client sessions carry.

    Never includes the password hash.
    """

    id: str
    email: str
    name: str
