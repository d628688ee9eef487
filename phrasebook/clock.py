"""Epoch-millisecond clock with calendar-day arithmetic."""

import time
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

DAY_MS = 24 * 60 * 60 * 1000

# Last millisecond datetime can represent: 9999-12-31T23:59:59.999Z
MAX_EPOCH_MS = int(datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc).timestamp()) * 1000 + 999


class Clock:
    """
    Wall clock in a fixed time zone.

    add_days() moves the local calendar date, so a review scheduled "+1 day"
    lands at the same wall-clock time tomorrow even across a DST change.
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz or timezone.utc

    @classmethod
    def from_name(cls, name: str) -> 'Clock':
        if not name or name.upper() == 'UTC':
            return cls(timezone.utc)
        return cls(ZoneInfo(name))

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000

    def add_days(self, epoch_ms: int, days: int) -> int:
        """
        Move epoch_ms forward by whole local calendar days.

        Results past the datetime range saturate at MAX_EPOCH_MS; the caller's
        interval is left as is.
        """
        seconds, millis = divmod(epoch_ms, 1000)
        try:
            local = datetime.fromtimestamp(seconds, tz=self.tz)
            shifted = local + timedelta(days=days)
            result = int(shifted.timestamp()) * 1000 + millis
        except (OverflowError, OSError, ValueError):
            result = epoch_ms + days * DAY_MS
        return min(result, MAX_EPOCH_MS)

    def to_iso(self, epoch_ms: int) -> str:
        """UTC ISO-8601 with millisecond precision, e.g. 2025-01-02T03:04:05.678Z."""
        seconds, millis = divmod(epoch_ms, 1000)
        dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
        return dt.strftime('%Y-%m-%dT%H:%M:%S.') + f"{millis:03d}Z"


class FixedClock(Clock):
    """Clock frozen at a given instant. advance() moves it forward."""

    def __init__(self, epoch_ms: int = 0, tz: Optional[tzinfo] = None):
        super().__init__(tz)
        self.current = epoch_ms

    def now_ms(self) -> int:
        return self.current

    def advance(self, ms: int = 0, days: int = 0) -> int:
        if days:
            self.current = self.add_days(self.current, days)
        self.current += ms
        return self.current
