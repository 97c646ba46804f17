"""
core/errors.py -- Error taxonomy shared by auth/, vault/ and api/.

Every error the core raises is a VaultError subclass. Each class carries the
HTTP status and machine-readable code the API layer renders, so api/main.py
needs exactly one exception handler for the whole family.

Messages are fixed strings. They never contain plaintext secrets, PINs, keys,
or anything that tells a caller *which* of several failure cases occurred:
  InvalidCredentials covers both "unknown user" and "wrong PIN".
  NotFound covers both "no such record" and "record owned by someone else".

Layer rule: no imports from api/, auth/ or vault/.
"""

from __future__ import annotations


class VaultError(Exception):
    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class DuplicateUsername(VaultError):
    status_code = 409
    code = "duplicate_username"
    message = "Username already exists."


class InvalidCredentials(VaultError):
    status_code = 401
    code = "invalid_credentials"
    message = "Invalid username or PIN."


class Unauthenticated(VaultError):
    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class NotFound(VaultError):
    status_code = 404
    code = "not_found"
    message = "Secret not found."


class DecryptionError(VaultError):
    """Stored ciphertext is corrupt, tampered, or was written under another key."""


class MalformedCredential(VaultError):
    """A stored PIN hash is not a bcrypt hash at all."""
