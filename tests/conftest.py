import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from phrasebook.clock import FixedClock
from phrasebook.deck import FlashcardDeck
from phrasebook.errors import StoreUnavailable
from phrasebook.history import HistoryStore
from phrasebook.kv import MemoryKeyValueStore

NOW = 1_700_000_000_000


class FlakyStore:
    """
    Wraps a store and makes selected calls raise StoreUnavailable.

    failing holds method names ("zadd") or (method, first_arg) pairs
    ("zadd", "translation:favorites") to fail only one set or key.
    """

    def __init__(self, inner, failing=()):
        self.inner = inner
        self.failing = set(failing)
        self.clock = inner.clock

    def __getattr__(self, name):
        target = getattr(self.inner, name)
        if not callable(target):
            return target

        def call(*args, **kwargs):
            if name in self.failing or (args and (name, args[0]) in self.failing):
                raise StoreUnavailable(name, RuntimeError("backend down"))
            return target(*args, **kwargs)

        return call


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def store(clock):
    return MemoryKeyValueStore(clock)


@pytest.fixture
def history(store, clock):
    return HistoryStore(store, clock=clock)


@pytest.fixture
def deck(history):
    return FlashcardDeck(history)


@pytest.fixture
def flaky(store):
    """Factory: flaky(*failing) -> FlakyStore over the shared in-memory store."""
    def make(*failing):
        return FlakyStore(store, failing)
    return make
