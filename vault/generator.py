"""Random password suggestions for the "generate" button in clients."""

import secrets
import string

MIN_LENGTH = 4
MAX_LENGTH = 128
SYMBOLS = "!@#$%^&*()-_=+<>?"


def generate_password(length: int = 12, use_symbols: bool = True) -> str:
    """Return a random password drawn from the OS CSPRNG.

    length is clamped to [MIN_LENGTH, MAX_LENGTH] rather than rejected.
    """
    length = max(MIN_LENGTH, min(length, MAX_LENGTH))
    alphabet = string.ascii_lowercase + string.ascii_uppercase + string.digits
    if use_symbols:
        alphabet += SYMBOLS
    return "".join(secrets.choice(alphabet) for _ in range(length))
