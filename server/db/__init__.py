"""Database layer: SQLAlchemy models, engine and the SQL-backed key-value store."""

from server.db.models import Base, KVEntry, SortedSetMember
from server.db.session import get_engine, init_db, reset_engine
from server.db.kv_store import SqlKeyValueStore

__all__ = [
    "Base",
    "KVEntry",
    "SortedSetMember",
    "SqlKeyValueStore",
    "get_engine",
    "init_db",
    "reset_engine",
]
