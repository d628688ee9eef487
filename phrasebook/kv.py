"""
Key-value store interface and the in-process implementation.

Provides:
  - KeyValueStore: Protocol for the Redis-like capability the history and
    deck layers consume (plain keys with optional expiry, plus sorted sets).
  - MemoryKeyValueStore: dict-backed store for tests and throwaway sessions.

Range and rank arguments follow Redis conventions: inclusive bounds,
negative indexes count from the end (-1 is the last member).
"""
from __future__ import annotations

import json
import threading
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from phrasebook.clock import Clock


@runtime_checkable
class KeyValueStore(Protocol):
   """Capability interface over a durable JSON key-value store."""

   def get(self, key: str) -> Optional[Any]:
      """Return the decoded value, or None if missing or expired."""
      ...

   def set(self, key: str, value: Any, expire_seconds: Optional[int] = None) -> None:
      """Store a JSON-serializable value, replacing any previous value and TTL."""
      ...

   def delete(self, key: str) -> bool:
      """Remove a key. Returns True if it existed."""
      ...

   def zadd(self, set_name: str, score: float, member: str) -> None:
      """Add member or update its score."""
      ...

   def zrem(self, set_name: str, member: str) -> bool:
      """Remove member. Returns True if it was present."""
      ...

   def zrange(self, set_name: str, start: int, end: int, reverse: bool = False) -> List[str]:
      """Members by rank (ascending score, or descending with reverse)."""
      ...

   def zremrangebyrank(self, set_name: str, start: int, end: int) -> int:
      """Remove members whose ascending rank is in [start, end]. Returns count."""
      ...


def rank_bounds(length: int, start: int, end: int) -> Optional[Tuple[int, int]]:
   """
   Resolve Redis-style inclusive rank bounds against a set of `length` members.

   Returns a half-open (lo, hi) pair for slicing, or None if the range is empty.
   """
   if start < 0:
      start += length
   if end < 0:
      end += length
   start = max(start, 0)
   end = min(end, length - 1)
   if length == 0 or start > end:
      return None
   return start, end + 1


class MemoryKeyValueStore:
   """
   In-process KeyValueStore.

   Values are stored JSON-encoded so callers never share mutable state with
   the store, and so non-serializable values fail the same way they would
   against a real backend. Expiry is evaluated lazily against the clock.
   """

   def __init__(self, clock: Optional[Clock] = None):
      self.clock = clock or Clock()
      self._lock = threading.Lock()
      self._values: Dict[str, Tuple[str, Optional[int]]] = {}
      self._sets: Dict[str, Dict[str, float]] = {}

   def _live(self, key: str) -> Optional[str]:
      entry = self._values.get(key)
      if entry is None:
         return None
      raw, expires_at = entry
      if expires_at is not None and expires_at <= self.clock.now_ms():
         del self._values[key]
         return None
      return raw

   def get(self, key: str) -> Optional[Any]:
      with self._lock:
         raw = self._live(key)
      return json.loads(raw) if raw is not None else None

   def set(self, key: str, value: Any, expire_seconds: Optional[int] = None) -> None:
      raw = json.dumps(value, ensure_ascii=False)
      expires_at = None
      if expire_seconds is not None:
         expires_at = self.clock.now_ms() + expire_seconds * 1000
      with self._lock:
         self._values[key] = (raw, expires_at)

   def delete(self, key: str) -> bool:
      with self._lock:
         existed = self._live(key) is not None
         self._values.pop(key, None)
      return existed

   def _ordered(self, set_name: str) -> List[str]:
      members = self._sets.get(set_name, {})
      return [m for m, _ in sorted(members.items(), key=lambda kv: (kv[1], kv[0]))]

   def zadd(self, set_name: str, score: float, member: str) -> None:
      with self._lock:
         self._sets.setdefault(set_name, {})[member] = score

   def zrem(self, set_name: str, member: str) -> bool:
      with self._lock:
         members = self._sets.get(set_name, {})
         return members.pop(member, None) is not None

   def zrange(self, set_name: str, start: int, end: int, reverse: bool = False) -> List[str]:
      with self._lock:
         ordered = self._ordered(set_name)
      if reverse:
         ordered.reverse()
      bounds = rank_bounds(len(ordered), start, end)
      if bounds is None:
         return []
      lo, hi = bounds
      return ordered[lo:hi]

   def zremrangebyrank(self, set_name: str, start: int, end: int) -> int:
      with self._lock:
         ordered = self._ordered(set_name)
         bounds = rank_bounds(len(ordered), start, end)
         if bounds is None:
            return 0
         lo, hi = bounds
         members = self._sets[set_name]
         for member in ordered[lo:hi]:
            del members[member]
         return hi - lo

   def zscore(self, set_name: str, member: str) -> Optional[float]:
      with self._lock:
         return self._sets.get(set_name, {}).get(member)

   def purge_expired(self) -> int:
      """Drop every expired plain key. Returns how many were removed."""
      now = self.clock.now_ms()
      with self._lock:
         expired = [k for k, (_, exp) in self._values.items() if exp is not None and exp <= now]
         for key in expired:
            del self._values[key]
      return len(expired)
