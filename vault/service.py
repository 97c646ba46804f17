"""
vault/service.py -- Owner-scoped secret operations.

SecretService is the layer routes call. It joins the store (ciphertext,
ownership) and the cipher (encryption):

  write path:  plaintext -> SecretCipher.encrypt -> SecretStore
  read path:   SecretStore -> SecretCipher.decrypt -> plaintext

Every mutating call re-reads the row and decrypts it for the response, so the
caller always sees what is actually stored. Entries leaving this class always
carry plaintext; ciphertext never crosses into api/.

owner_id is always an explicit argument and is trusted: it comes from
auth.dependencies.get_current_identity(), the single place tokens are checked.

Missing and foreign records both raise NotFound. DecryptionError from a
corrupt row propagates; the record id is logged, never its contents.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from core.errors import DecryptionError, NotFound
from vault.crypto import SecretCipher
from vault.models import SecretEntry
from vault.store import SecretStore

logger = logging.getLogger("easypass.vault")


class SecretService:
    def __init__(self, store: SecretStore, cipher: SecretCipher) -> None:
        self.store = store
        self.cipher = cipher

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def list(self, owner_id: int) -> list[SecretEntry]:
        return [self._decrypted(e) for e in self.store.list_by_owner(owner_id)]

    def get(self, owner_id: int, secret_id: int) -> SecretEntry:
        entry = self.store.get(owner_id, secret_id)
        if entry is None:
            raise NotFound()
        return self._decrypted(entry)

    def search_by_service(self, owner_id: int, substring: str) -> list[SecretEntry]:
        """Return the owner's entries whose service contains substring, ignoring case.

        An empty list means nothing matched; the API reports that as
        not_found_or_empty rather than treating it as an error here.
        """
        return [self._decrypted(e) for e in self.store.search_by_service(owner_id, substring)]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, owner_id: int, service: str, username: str, password: str) -> SecretEntry:
        entry = SecretEntry(
            owner_id=owner_id,
            service=service,
            username=username,
            password=self.cipher.encrypt(password),
        )
        secret_id = self.store.create(entry)
        logger.info("Secret id=%s created for user id=%s", secret_id, owner_id)
        return self.get(owner_id, secret_id)

    def update(self, owner_id: int, secret_id: int, service: str, username: str, password: str) -> SecretEntry:
        updated = self.store.update(
            owner_id,
            secret_id,
            service=service,
            username=username,
            encrypted_password=self.cipher.encrypt(password),
        )
        if not updated:
            raise NotFound()
        logger.info("Secret id=%s updated for user id=%s", secret_id, owner_id)
        return self.get(owner_id, secret_id)

    def delete(self, owner_id: int, secret_id: int) -> None:
        if not self.store.delete(owner_id, secret_id):
            raise NotFound()
        logger.info("Secret id=%s deleted for user id=%s", secret_id, owner_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _decrypted(self, entry: SecretEntry) -> SecretEntry:
        try:
            plaintext = self.cipher.decrypt(entry.password)
        except DecryptionError:
            logger.error("Stored secret id=%s could not be decrypted", entry.id)
            raise
        return replace(entry, password=plaintext)
