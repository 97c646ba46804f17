"""
core/db.py -- Engine construction shared by auth/store.py and vault/store.py.

Both stores own their own engine and schema (Repository pattern); this module
only holds the SQLite connection settings they have in common.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL allows readers to proceed without blocking during writes. Set
    per-connection because SQLite PRAGMAs are not inherited by new connections
    from the pool. In-memory databases silently keep journal_mode=memory.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url.

    check_same_thread=False: FastAPI runs sync handlers in a thread pool, so a
    pooled SQLite connection may be used from a thread other than its creator.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()
