"""
vault/crypto.py -- Symmetric encryption of stored secret passwords.

Storage format (TEXT column secrets.encrypted_password):

    base64( IV[16] || AES-256-CBC-PKCS7(utf8(plaintext)) )

Standard base64 alphabet with padding. The AES key is SHA-256 of the
configured ENCRYPTION_KEY passphrase, so operators can supply a memorable
string while the cipher always gets 32 bytes of key material. The key is
derived once in __init__ and never logged or exposed.

Known weakness: CBC without a MAC gives confidentiality only. A flipped byte
is detected only if it happens to break the PKCS7 padding; otherwise it
decrypts to garbage. The format is kept for compatibility with existing
stored data. Moving to AES-GCM (see cryptography's AESGCM) would need a
versioned format and a migration.

Empty plaintext is stored as "" and never encrypted.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from core.errors import DecryptionError

logger = logging.getLogger("easypass.vault")

IV_LENGTH = 16  # AES block size in bytes
_BLOCK_BITS = algorithms.AES.block_size  # 128


def derive_key(passphrase: str) -> bytes:
    """Return the 32-byte AES-256 key for a passphrase (SHA-256 digest)."""
    return hashlib.sha256(passphrase.encode("utf-8")).digest()


class SecretCipher:
    """Encrypts and decrypts secret strings under one passphrase-derived key.

    Instances hold only the derived key and are safe to share across threads.

    Usage:
        cipher = SecretCipher(settings.encryption_key)
        token = cipher.encrypt("hunter2")
        cipher.decrypt(token)  # "hunter2"
    """

    def __init__(self, passphrase: str) -> None:
        if not passphrase:
            raise ValueError("Encryption passphrase must not be empty.")
        self._key = derive_key(passphrase)

    def __repr__(self) -> str:
        return "SecretCipher(<key hidden>)"

    def encrypt(self, plaintext: str | None) -> str:
        if not plaintext:
            return ""
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(_BLOCK_BITS).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return base64.b64encode(iv + ciphertext).decode("ascii")

    def decrypt(self, token: str | None) -> str:
        """Reverse encrypt(). Raises DecryptionError on corrupt input.

        Corrupt means: not valid base64, no room for the IV, a ciphertext
        that is not a whole number of blocks, bad PKCS7 padding (wrong key
        or tampering), or bytes that are not UTF-8.
        """
        if not token:
            return ""
        try:
            raw = base64.b64decode(token, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecryptionError("Ciphertext is not valid base64.") from exc

        iv, ciphertext = raw[:IV_LENGTH], raw[IV_LENGTH:]
        if len(iv) < IV_LENGTH:
            raise DecryptionError("Ciphertext is shorter than the IV.")
        if not ciphertext or len(ciphertext) % IV_LENGTH:
            raise DecryptionError("Ciphertext length is not a multiple of the block size.")

        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        try:
            data = unpadder.update(padded) + unpadder.finalize()
            return data.decode("utf-8")
        except ValueError as exc:
            # UnicodeDecodeError is a ValueError subclass
            raise DecryptionError("Ciphertext failed padding or encoding checks.") from exc
