"""
auth/accounts.py -- Registration and login.

These are the only code paths that touch PINs. Both are synchronous (bcrypt is
CPU-bound); routes that call them are plain `def` handlers so FastAPI runs
them in its thread pool.

[C1] Timing equalization: authenticate() always runs exactly one bcrypt check.
An unknown username is checked against dummy_hash(rounds), a hash at the
same cost as real PIN hashes, so response time does not reveal whether the
account exists, and the error raised is the same in both cases.

Layer rule: no imports from api/ or vault/.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError

from auth.hashing import DEFAULT_ROUNDS, dummy_hash, hash_pin, verify_pin
from auth.models import User
from auth.store import UserStore
from auth.tokens import TokenService
from core.errors import DuplicateUsername, InvalidCredentials

logger = logging.getLogger("easypass.auth")


def register(store: UserStore, username: str, pin: str, rounds: int = DEFAULT_ROUNDS) -> User:
    """Create an account. Raises DuplicateUsername if the name is taken.

    Uniqueness is decided by the UNIQUE constraint at insert time, not by a
    prior lookup, so concurrent registrations of the same name are safe.
    """
    user = User(username=username, pin_hash=hash_pin(pin, rounds=rounds))
    try:
        user_id = store.create_user(user)
    except IntegrityError as exc:
        raise DuplicateUsername() from exc
    created = store.get_by_id(user_id)
    logger.info("Registered user id=%s", user_id)
    return created


def authenticate(store: UserStore, username: str, pin: str, rounds: int = DEFAULT_ROUNDS) -> User:
    """Return the User for a correct username/PIN pair.

    Raises InvalidCredentials for an unknown user or a wrong PIN. A stored
    hash that is not a bcrypt hash raises MalformedCredential, which the API
    reports as an internal error.

    rounds must be the cost PINs are hashed with (BCRYPT_ROUNDS).
    """
    user = store.get_by_username(username)
    if user is None:
        verify_pin(pin, dummy_hash(rounds))  # [C1] do NOT return before running bcrypt
        raise InvalidCredentials()
    if not verify_pin(pin, user.pin_hash):
        raise InvalidCredentials()
    return user


def login(
    store: UserStore, tokens: TokenService, username: str, pin: str, rounds: int = DEFAULT_ROUNDS
) -> str:
    """Authenticate and return a freshly issued bearer token."""
    user = authenticate(store, username, pin, rounds=rounds)
    logger.info("Login succeeded for user id=%s", user.id)
    return tokens.issue(user.id, user.username)
