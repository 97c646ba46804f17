"""
auth/hashing.py -- One-way PIN hashing with bcrypt.

bcrypt is the right tool for low-entropy secrets like PINs: the salt and cost
factor are embedded in the output ("$2b$12$<22-char salt><31-char digest>"),
every call draws a fresh salt from the OS CSPRNG, and checkpw() compares in
constant time.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Layer rule: no imports from api/ or vault/.
"""

from __future__ import annotations

import re
from functools import lru_cache

import bcrypt

from core.errors import MalformedCredential

# bcrypt only reads the first 72 bytes. Recent releases raise on longer input
# instead of truncating, so we cut explicitly and never crash on long PINs.
_BCRYPT_MAX_BYTES = 72

# Modular crypt format: $2a$ / $2b$ / $2y$, two-digit cost, 53 chars of
# bcrypt-base64 (22 salt + 31 digest).
_BCRYPT_HASH_RE = re.compile(r"^\$2[aby]\$\d{2}\$[./A-Za-z0-9]{53}$")

DEFAULT_ROUNDS = 12


def _encode(pin: str) -> bytes:
    return pin.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_pin(pin: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Return a salted bcrypt hash of the given PIN.

    Two calls with the same PIN return different strings (fresh salt). Any
    string is accepted, including the empty string; length policy belongs to
    the request models in api/models.py.
    """
    return bcrypt.hashpw(_encode(pin), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_pin(pin: str, pin_hash: str) -> bool:
    """Return True if pin matches pin_hash.

    Raises MalformedCredential if pin_hash is not a bcrypt hash at all (a
    corrupt or foreign value in the users table). A well-formed hash that
    bcrypt still refuses (e.g. an invalid salt) returns False.
    """
    if not isinstance(pin_hash, str) or not _BCRYPT_HASH_RE.match(pin_hash):
        raise MalformedCredential()
    try:
        return bcrypt.checkpw(_encode(pin), pin_hash.encode("ascii"))
    except ValueError:
        return False


@lru_cache
def dummy_hash(rounds: int = DEFAULT_ROUNDS) -> str:
    """Return the timing-equalization hash for the given cost factor.

    authenticate() verifies against it when the username does not exist. It
    must share the cost of real PIN hashes or an unknown user answers at a
    different speed from a wrong PIN. Cached per cost; the API lifespan warms
    the configured cost so the first login is not slower than later ones.
    """
    return hash_pin("easypass_timing_dummy", rounds=rounds)
