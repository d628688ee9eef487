"""Translation history: bounded, time-ordered records with a favorites index."""

import logging
from typing import Any, Iterable, List, Optional

from phrasebook.clock import Clock
from phrasebook.errors import InvalidInput, NotFound, StoreUnavailable
from phrasebook.kv import KeyValueStore
from phrasebook.models import (
    FAVORITES_SET,
    HISTORY_SET,
    LANGUAGES,
    Example,
    TranslationRecord,
    make_record_key,
    make_schedule_key,
)
from phrasebook.outcome import WriteOutcome

logger = logging.getLogger('charla.history')

DAY_SECONDS = 24 * 60 * 60
RECORD_TTL_SECONDS = 30 * DAY_SECONDS
MAX_HISTORY_ENTRIES = 100
DEFAULT_PAGE_SIZE = 50


def _require_key(key) -> str:
    if not isinstance(key, str) or not key.strip():
        raise InvalidInput("Key is required")
    return key


def _coerce_examples(examples: Optional[Iterable[Any]]) -> List[Example]:
    out = []
    for e in examples or []:
        if isinstance(e, Example):
            out.append(e)
        elif isinstance(e, dict) and e.get('text'):
            out.append(Example.from_dict(e))
        else:
            raise InvalidInput(f"Malformed example: {e!r}")
    return out


class HistoryStore:
    """
    Translation records plus two sorted-set indexes over them.

    Layout:
        translation:<ms>        record JSON, 30-day expiry
        translation:history     key -> creation timestamp, capped at max_entries
        translation:favorites   key -> time favorited

    Trimming the history index does not touch the underlying record,
    its favorite membership or its scheduling state.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Optional[Clock] = None,
        max_entries: int = MAX_HISTORY_ENTRIES,
        record_ttl_seconds: int = RECORD_TTL_SECONDS,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.store = store
        self.clock = clock or Clock()
        self.max_entries = max_entries
        self.record_ttl_seconds = record_ttl_seconds

    def record(
        self,
        original: str,
        translation: str,
        from_lang: str,
        to_lang: str,
        examples: Optional[Iterable[Any]] = None,
    ) -> WriteOutcome[TranslationRecord]:
        """
        Persist a new translation and index it in the history.

        The record write is primary: if it fails, StoreUnavailable propagates.
        Index update and trim are secondary and land in the outcome's failures.
        Two calls in the same millisecond share a key; the later one wins.
        """
        if not isinstance(original, str) or not original.strip():
            raise InvalidInput("Text is required")
        if not isinstance(translation, str):
            raise InvalidInput("Translation must be a string")
        if from_lang not in LANGUAGES or to_lang not in LANGUAGES:
            raise InvalidInput(
                f"Languages must be one of {', '.join(LANGUAGES)}, got {from_lang!r} -> {to_lang!r}"
            )

        timestamp = self.clock.now_ms()
        record = TranslationRecord(
            key=make_record_key(timestamp),
            original=original,
            translation=translation,
            from_lang=from_lang,
            to_lang=to_lang,
            timestamp=timestamp,
            examples=_coerce_examples(examples),
        )

        self.store.set(record.key, record.to_dict(), expire_seconds=self.record_ttl_seconds)

        outcome = WriteOutcome(value=record)
        if outcome.attempt('history.add', self.store.zadd, HISTORY_SET, timestamp, record.key):
            # Keep only the newest max_entries: drop ranks 0 .. -(max+1)
            outcome.attempt(
                'history.trim', self.store.zremrangebyrank,
                HISTORY_SET, 0, -(self.max_entries + 1),
            )
        logger.debug("Recorded %s (%s -> %s)", record.key, from_lang, to_lang)
        return outcome

    def get(self, key: str) -> Optional[TranslationRecord]:
        """Fetch one record, or None if it does not exist (or has expired)."""
        raw = self.store.get(_require_key(key))
        if not isinstance(raw, dict):
            return None
        return TranslationRecord.from_dict(raw, key=key)

    def list(self, limit: int = DEFAULT_PAGE_SIZE, query: Optional[str] = None) -> List[TranslationRecord]:
        """
        Most recent translations first.

        With a query, only records whose text, translation or examples contain
        it (case-insensitive) are returned, searching the whole history and
        stopping at limit matches. A blank query is no filter.

        Keys whose record has expired are skipped. A failing store yields an
        empty list rather than an error.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidInput(f"Limit must be a positive integer, got {limit!r}")
        if query is not None and not isinstance(query, str):
            raise InvalidInput(f"Query must be a string, got {query!r}")
        query = (query or '').strip()
        try:
            end = -1 if query else limit - 1
            records = []
            for key in self.store.zrange(HISTORY_SET, 0, end, reverse=True):
                record = self.get(key)
                if record is None or (query and not record.matches(query)):
                    continue
                records.append(record)
                if len(records) == limit:
                    break
            return records
        except StoreUnavailable as e:
            logger.error("History fetch failed, returning empty list: %s", e)
            return []

    def delete(self, key: str) -> WriteOutcome[None]:
        """
        Remove a record with its history entry, favorite entry and schedule.

        Every removal is attempted even if an earlier one fails or the record
        is already gone, so stale index entries are cleaned up. Raises
        StoreUnavailable if the record itself could not be removed, otherwise
        NotFound if it did not exist.
        """
        _require_key(key)
        outcome: WriteOutcome[None] = WriteOutcome()

        existed = False
        record_error = None
        try:
            existed = self.store.delete(key)
        except StoreUnavailable as e:
            record_error = e
            logger.warning("Delete of record %s failed: %s", key, e)

        outcome.attempt('history.remove', self.store.zrem, HISTORY_SET, key)
        outcome.attempt('favorites.remove', self.store.zrem, FAVORITES_SET, key)
        outcome.attempt('schedule.delete', self.store.delete, make_schedule_key(key))

        if record_error is not None:
            raise record_error
        if not existed:
            raise NotFound(key)
        logger.debug("Deleted %s", key)
        return outcome

    def set_favorite(self, key: str, favorite: bool) -> WriteOutcome[TranslationRecord]:
        """
        Set or clear the favorite flag.

        Rewriting the record refreshes its expiry. Favoriting an already
        favorited key only moves its score; the index never holds duplicates.
        """
        _require_key(key)
        if not isinstance(favorite, bool):
            raise InvalidInput(f"Favorite must be a boolean, got {favorite!r}")

        existing = self.get(key)
        if existing is None:
            raise NotFound(key)

        record = existing.with_favorite(favorite)
        self.store.set(key, record.to_dict(), expire_seconds=self.record_ttl_seconds)

        outcome = WriteOutcome(value=record)
        if favorite:
            outcome.attempt('favorites.add', self.store.zadd, FAVORITES_SET, self.clock.now_ms(), key)
        else:
            outcome.attempt('favorites.remove', self.store.zrem, FAVORITES_SET, key)
        return outcome

    def favorite_keys(self) -> List[str]:
        """All favorited keys in the order they were favorited."""
        return self.store.zrange(FAVORITES_SET, 0, -1)
