"""
core/db.py -- Shared SQLAlchemy engine construction.

Both stores (auth/store.py, tasks/store.py) build their engines here so the
SQLite-specific connection settings live in one place.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _is_memory_db(db_url: str) -> bool:
    return ":memory:" in db_url or "mode=memory" in db_url


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url.

    check_same_thread=False because sync handlers run in FastAPI's thread
    pool and share the pool's connections. In-memory databases get a
    StaticPool: the database lives only as long as its connection, so every
    checkout must hand back that same connection.
    """
    if not db_url.startswith("sqlite"):
        return create_engine(db_url)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if _is_memory_db(db_url):
        kwargs["poolclass"] = StaticPool
    engine = create_engine(db_url, **kwargs)
    event.listen(engine, "connect", _set_wal_mode)
    return engine
