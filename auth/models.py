"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in vault/models.py -- dataclasses own domain shape; stores and services do
the work.

Layer rule: no imports from api/ or vault/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    pin_hash is the bcrypt output from auth.hashing.hash_pin(). The raw PIN is
    never stored. id is None before the record is written to the database.
    """

    username: str
    pin_hash: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Identity:
    """The verified caller behind a bearer token.

    Produced only by TokenService.verify(). Routes receive it from the
    get_current_identity dependency and pass user_id to every vault call.
    """

    user_id: int
    username: str
    issued_at: int | None = None
    expires_at: int | None = None
