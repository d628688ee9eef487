"""FastAPI dependency factories."""

from functools import lru_cache

from fastapi import Depends

from phrasebook.clock import Clock
from phrasebook.deck import FlashcardDeck
from phrasebook.history import HistoryStore
from phrasebook.kv import KeyValueStore
from server.config import Settings
from server.db.kv_store import SqlKeyValueStore
from server.db.session import get_engine


@lru_cache()
def get_settings() -> Settings:
    """Singleton Settings -- override via app.dependency_overrides in tests."""
    return Settings()


def get_clock(settings: Settings = Depends(get_settings)) -> Clock:
    return Clock.from_name(settings.timezone)


def get_store(
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_clock),
) -> KeyValueStore:
    """SQL-backed store on the configured database (tables created at startup)."""
    return SqlKeyValueStore(get_engine(settings), clock=clock)


def get_history(
    settings: Settings = Depends(get_settings),
    store: KeyValueStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
) -> HistoryStore:
    return HistoryStore(
        store,
        clock=clock,
        max_entries=settings.history_max_entries,
        record_ttl_seconds=settings.record_ttl_seconds,
    )


def get_deck(
    settings: Settings = Depends(get_settings),
    history: HistoryStore = Depends(get_history),
) -> FlashcardDeck:
    return FlashcardDeck(history, schedule_ttl_seconds=settings.schedule_ttl_seconds)
