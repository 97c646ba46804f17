"""
vault/store.py -- SQLAlchemy Core persistence for secret entries.

Pattern: Repository + Data Mapper (same as auth/store.py).

Ownership scoping:
  Every read, update and delete takes owner_id and puts it in the WHERE
  clause next to the record id. A row owned by someone else is therefore
  invisible: get() returns None, update()/delete() return False, exactly as
  for a missing id. There is no method that looks a secret up by id alone.

The store moves ciphertext only. It never sees the encryption key.

Concurrency: two updates to the same row are last-writer-wins. SQLite's
single-statement atomicity is the only guarantee.

Layer rule: no imports from api/ or auth/.
"""

from __future__ import annotations

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, func
from sqlalchemy.engine import Engine

from core.db import make_engine, now_iso
from vault.models import SecretEntry

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_secrets = Table(
    "secrets",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("owner_id", Integer, nullable=False),
    Column("service", String(200), nullable=False),
    Column("username", String(200), nullable=False),
    Column("encrypted_password", Text, nullable=False),  # base64(IV || ciphertext)
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_secrets_owner_id", "owner_id"),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SecretStore:
    """Owner-scoped repository for SecretEntry records.

    Usage:
        store = SecretStore("sqlite:///easypass.db")
        sid = store.create(SecretEntry(owner_id=1, service="Mail", username="a@x.com", password=ciphertext))
        store.list_by_owner(owner_id=1)
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def create(self, entry: SecretEntry) -> int:
        """Insert a new entry (password already encrypted) and return its ID."""
        now = now_iso()
        with self.engine.connect() as conn:
            result = conn.execute(
                _secrets.insert().values(
                    owner_id=entry.owner_id,
                    service=entry.service,
                    username=entry.username,
                    encrypted_password=entry.password,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get(self, owner_id: int, secret_id: int) -> SecretEntry | None:
        """Return the entry if it exists AND belongs to owner_id, else None."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _secrets.select().where((_secrets.c.id == secret_id) & (_secrets.c.owner_id == owner_id))
            ).fetchone()
        return _row_to_entry(row) if row is not None else None

    def list_by_owner(self, owner_id: int) -> list[SecretEntry]:
        """Return all entries for owner_id ordered by service name, then id."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _secrets.select()
                .where(_secrets.c.owner_id == owner_id)
                .order_by(func.lower(_secrets.c.service), _secrets.c.id)
            ).fetchall()
        return [_row_to_entry(r) for r in rows]

    def search_by_service(self, owner_id: int, substring: str) -> list[SecretEntry]:
        """Case-insensitive substring match on service, owner rows only.

        SQLite's lower() and LIKE only fold ASCII, so "Über" would never match
        "über". The owner filter runs in SQL and the match runs here with
        str.casefold(), which folds every script the same way on both sides.
        """
        needle = substring.casefold()
        entries = [e for e in self.list_by_owner(owner_id) if needle in e.service.casefold()]
        return sorted(entries, key=lambda e: (e.service.casefold(), e.id))

    def update(self, owner_id: int, secret_id: int, service: str, username: str, encrypted_password: str) -> bool:
        """Overwrite the mutable fields of an owned entry.

        id and owner_id are never written. Returns True if a row was updated,
        False if secret_id does not exist or belongs to someone else.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _secrets.update()
                .where((_secrets.c.id == secret_id) & (_secrets.c.owner_id == owner_id))
                .values(
                    service=service,
                    username=username,
                    encrypted_password=encrypted_password,
                    updated_at=now_iso(),
                )
            )
            conn.commit()
        return result.rowcount > 0

    def delete(self, owner_id: int, secret_id: int) -> bool:
        """Delete an owned entry. Returns True if deleted, False if not found or wrong owner."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _secrets.delete().where((_secrets.c.id == secret_id) & (_secrets.c.owner_id == owner_id))
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_entry(row) -> SecretEntry:
    return SecretEntry(
        id=row.id,
        owner_id=row.owner_id,
        service=row.service,
        username=row.username,
        password=row.encrypted_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
