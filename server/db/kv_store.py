"""SQL-backed KeyValueStore (SQLite by default, any SQLAlchemy URL works)."""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession, sessionmaker

from phrasebook.clock import Clock
from phrasebook.errors import StoreUnavailable
from phrasebook.kv import rank_bounds
from server.db.models import KVEntry, SortedSetMember

logger = logging.getLogger("charla.kv")


class SqlKeyValueStore:
    """
    KeyValueStore over two tables: kv_entries and kv_sorted_set_members.

    Every call runs in its own short transaction. Expired entries are
    treated as missing on read and removed lazily; purge_expired() sweeps
    them in bulk. Backend errors surface as StoreUnavailable.
    """

    def __init__(self, engine: Engine, clock: Optional[Clock] = None):
        self.engine = engine
        self.clock = clock or Clock()
        self._factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @contextmanager
    def _transaction(self, operation: str) -> Generator[DBSession, None, None]:
        db = self._factory()
        try:
            yield db
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("KV %s failed: %s", operation, e)
            raise StoreUnavailable(operation, e) from e
        finally:
            db.close()

    def _expired(self, entry: KVEntry) -> bool:
        return entry.expires_at is not None and entry.expires_at <= self.clock.now_ms()

    def get(self, key: str) -> Optional[Any]:
        with self._transaction("get") as db:
            entry = db.get(KVEntry, key)
            if entry is None:
                return None
            if self._expired(entry):
                db.delete(entry)
                return None
            return entry.value

    def set(self, key: str, value: Any, expire_seconds: Optional[int] = None) -> None:
        expires_at = None
        if expire_seconds is not None:
            expires_at = self.clock.now_ms() + expire_seconds * 1000
        with self._transaction("set") as db:
            db.merge(KVEntry(key=key, value=value, expires_at=expires_at))

    def delete(self, key: str) -> bool:
        with self._transaction("delete") as db:
            entry = db.get(KVEntry, key)
            if entry is None:
                return False
            existed = not self._expired(entry)
            db.delete(entry)
            return existed

    def zadd(self, set_name: str, score: float, member: str) -> None:
        with self._transaction("zadd") as db:
            db.merge(SortedSetMember(set_name=set_name, member=member, score=float(score)))

    def zrem(self, set_name: str, member: str) -> bool:
        with self._transaction("zrem") as db:
            result = db.execute(
                delete(SortedSetMember).where(
                    SortedSetMember.set_name == set_name,
                    SortedSetMember.member == member,
                )
            )
            return result.rowcount > 0

    def _count(self, db: DBSession, set_name: str) -> int:
        return db.scalar(
            select(func.count()).select_from(SortedSetMember)
            .where(SortedSetMember.set_name == set_name)
        ) or 0

    def _members_by_rank(
        self, db: DBSession, set_name: str, start: int, end: int, reverse: bool,
    ) -> List[str]:
        bounds = rank_bounds(self._count(db, set_name), start, end)
        if bounds is None:
            return []
        lo, hi = bounds
        if reverse:
            order = (SortedSetMember.score.desc(), SortedSetMember.member.desc())
        else:
            order = (SortedSetMember.score.asc(), SortedSetMember.member.asc())
        stmt = (
            select(SortedSetMember.member)
            .where(SortedSetMember.set_name == set_name)
            .order_by(*order)
            .offset(lo)
            .limit(hi - lo)
        )
        return list(db.scalars(stmt))

    def zrange(self, set_name: str, start: int, end: int, reverse: bool = False) -> List[str]:
        with self._transaction("zrange") as db:
            return self._members_by_rank(db, set_name, start, end, reverse)

    def zremrangebyrank(self, set_name: str, start: int, end: int) -> int:
        with self._transaction("zremrangebyrank") as db:
            members = self._members_by_rank(db, set_name, start, end, reverse=False)
            if not members:
                return 0
            db.execute(
                delete(SortedSetMember).where(
                    SortedSetMember.set_name == set_name,
                    SortedSetMember.member.in_(members),
                )
            )
            return len(members)

    def zscore(self, set_name: str, member: str) -> Optional[float]:
        with self._transaction("zscore") as db:
            row = db.get(SortedSetMember, (set_name, member))
            return row.score if row is not None else None

    def purge_expired(self) -> int:
        """Delete every expired plain key. Returns how many were removed."""
        with self._transaction("purge_expired") as db:
            result = db.execute(
                delete(KVEntry).where(
                    KVEntry.expires_at.is_not(None),
                    KVEntry.expires_at <= self.clock.now_ms(),
                )
            )
            return result.rowcount
