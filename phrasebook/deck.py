"""Flashcard deck over favorited translations, scheduled with SM-2."""

import logging
from typing import List, Optional

from phrasebook.clock import Clock
from phrasebook.errors import InvalidInput, NotFound, StoreUnavailable
from phrasebook.history import DAY_SECONDS, HistoryStore
from phrasebook.models import (
    DeckStats,
    DueCard,
    ReviewSummary,
    SchedulingState,
    make_schedule_key,
)
from phrasebook.scheduler import compute_next, validate_quality

logger = logging.getLogger('charla.deck')

SCHEDULE_TTL_SECONDS = 365 * DAY_SECONDS


class FlashcardDeck:
    """
    Favorites as a review deck.

    Scheduling state lives under srs:<record key>. A favorite without a
    stored state is treated as new (due now); that default is not written
    back until the card is actually reviewed.
    """

    def __init__(
        self,
        history: HistoryStore,
        clock: Optional[Clock] = None,
        schedule_ttl_seconds: int = SCHEDULE_TTL_SECONDS,
    ):
        self.history = history
        self.store = history.store
        self.clock = clock or history.clock
        self.schedule_ttl_seconds = schedule_ttl_seconds

    def load_state(self, key: str, now_ms: int) -> SchedulingState:
        raw = self.store.get(make_schedule_key(key))
        if not isinstance(raw, dict):
            return SchedulingState.initial(now_ms)
        return SchedulingState.from_dict(raw)

    def _favorite_cards(self, now_ms: int) -> List[DueCard]:
        cards = []
        for key in self.history.favorite_keys():
            record = self.history.get(key)
            if record is None:
                # Orphaned favorite: record expired or was never cleaned up
                continue
            cards.append(DueCard(record=record, state=self.load_state(key, now_ms)))
        return cards

    def due_cards(self, now_ms: Optional[int] = None) -> List[DueCard]:
        """
        Favorited translations whose next review is at or before now.

        Returned in the order they were favorited, not by urgency.
        A failing store yields an empty list.
        """
        if now_ms is None:
            now_ms = self.clock.now_ms()
        try:
            return [c for c in self._favorite_cards(now_ms) if c.state.is_due(now_ms)]
        except StoreUnavailable as e:
            logger.error("Flashcard fetch failed, returning empty deck: %s", e)
            return []

    def submit_review(self, key: str, quality: int) -> ReviewSummary:
        """
        Grade one card and persist its new schedule.

        Raises:
            InvalidInput if key is empty or quality is outside 0-5.
            NotFound if the translation no longer exists.
            StoreUnavailable if the new schedule could not be saved.
        """
        if not isinstance(key, str) or not key.strip():
            raise InvalidInput("Key is required")
        validate_quality(quality)

        if self.history.get(key) is None:
            raise NotFound(key)

        now_ms = self.clock.now_ms()
        prior = self.load_state(key, now_ms)
        state = compute_next(quality, prior, now_ms, self.clock)

        self.store.set(
            make_schedule_key(key), state.to_dict(),
            expire_seconds=self.schedule_ttl_seconds,
        )
        logger.debug(
            "Reviewed %s q=%d: reps=%d interval=%dd ease=%.2f",
            key, quality, state.repetitions, state.interval, state.ease_factor,
        )
        return ReviewSummary(
            key=key,
            next_review=state.next_review,
            interval=state.interval,
            state=state,
        )

    def stats(self, now_ms: Optional[int] = None) -> DeckStats:
        """
        Deck counters: favorites, due now, scheduled for later, and
        learning (cards that have not yet passed two reviews in a row).
        """
        if now_ms is None:
            now_ms = self.clock.now_ms()
        try:
            cards = self._favorite_cards(now_ms)
        except StoreUnavailable as e:
            logger.error("Deck stats failed: %s", e)
            return DeckStats()

        due = sum(1 for c in cards if c.state.is_due(now_ms))
        return DeckStats(
            favorites=len(cards),
            due=due,
            scheduled=len(cards) - due,
            learning=sum(1 for c in cards if c.state.repetitions < 2),
        )
