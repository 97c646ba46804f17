"""
vault/models.py -- Domain dataclass for stored secrets.

Pure data container with zero logic. Encryption lives in vault/crypto.py,
ownership rules in vault/store.py, and the encrypt-on-write /
decrypt-on-read flow in vault/service.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class SecretEntry:
    """One saved login for an external service.

    password holds ciphertext ("base64(IV || ciphertext)") while the entry is
    inside the store, and plaintext once SecretService has decrypted it. The
    store never decrypts; the service never hands ciphertext to the API.

    id is None before the record is written to the database. owner_id is set
    once at creation and never changes.
    """

    owner_id: int
    service: str
    username: str
    password: str = ""
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""  # ISO 8601, set by store on insert and update
