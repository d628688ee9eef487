"""Tests for the history, favorite and flashcard API endpoints."""

import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest
from fastapi.testclient import TestClient

from phrasebook.clock import DAY_MS, FixedClock
from phrasebook.kv import MemoryKeyValueStore
from server.app import app
from server.config import Settings
from server.db.session import init_db, reset_engine
from server.dependencies import get_clock, get_settings, get_store

NOW = 1_700_000_000_000


# ============================================================================
# Helpers
# ============================================================================

@pytest.fixture
def api():
    """TestClient over an in-memory store and a frozen clock."""
    clock = FixedClock(NOW)
    store = MemoryKeyValueStore(clock)
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app), clock, store
    finally:
        app.dependency_overrides.clear()


def _translate(client, original="¿Qué más?", translation="What's up?", from_lang="es", to_lang="en"):
    resp = client.post("/translate-result", json={
        "original": original,
        "translation": translation,
        "fromLang": from_lang,
        "toLang": to_lang,
    })
    assert resp.status_code == 200, resp.text
    return resp.json()


def _delete(client, key):
    return client.request("DELETE", "/history/item", json={"key": key})


# ============================================================================
# Tests: /health
# ============================================================================

def test_health():
    client = TestClient(app)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


# ============================================================================
# Tests: /translate-result and /history
# ============================================================================

def test_translate_result_returns_key(api):
    client, clock, _ = api
    body = _translate(client)
    assert body["key"] == f"translation:{NOW}"
    assert body["timestamp"] == NOW
    assert body["status"] == "ok"
    assert body["warnings"] == []


def test_translate_result_with_examples(api):
    client, _, _ = api
    resp = client.post("/translate-result", json={
        "original": "parce",
        "translation": "buddy",
        "from_lang": "es",
        "to_lang": "en",
        "examples": [{"text": "¿Qué hubo, parce?", "english": "What's up, buddy?"}],
    })
    assert resp.status_code == 200
    history = client.get("/history").json()["history"]
    assert history[0]["examples"] == [{"text": "¿Qué hubo, parce?", "english": "What's up, buddy?"}]


@pytest.mark.parametrize("payload", [
    {"translation": "x", "fromLang": "en", "toLang": "es"},
    {"original": "", "translation": "x", "fromLang": "en", "toLang": "es"},
    {"original": "hi", "translation": "x", "fromLang": "fr", "toLang": "es"},
    {"original": "   ", "translation": "x", "fromLang": "en", "toLang": "es"},
])
def test_translate_result_invalid(api, payload):
    client, _, _ = api
    resp = client.post("/translate-result", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"]


def test_history_most_recent_first(api):
    client, clock, _ = api
    keys = []
    for word in ("uno", "dos", "tres"):
        keys.append(_translate(client, original=word)["key"])
        clock.advance(ms=1000)
    body = client.get("/history").json()
    assert [h["key"] for h in body["history"]] == list(reversed(keys))
    assert body["history"][0]["fromLang"] == "es"
    assert body["history"][0]["favorite"] is False


def test_history_limit(api):
    client, clock, _ = api
    for i in range(5):
        _translate(client, original=f"w{i}")
        clock.advance(ms=1)
    assert len(client.get("/history", params={"limit": 2}).json()["history"]) == 2
    assert client.get("/history", params={"limit": 0}).status_code == 400


def test_history_empty(api):
    client, _, _ = api
    assert client.get("/history").json() == {"history": []}


def test_history_search(api):
    client, clock, _ = api
    keys = []
    for original, translation in [("¡Qué chimba!", "How awesome!"), ("parce", "buddy"), ("¡Qué pena!", "How embarrassing!")]:
        keys.append(_translate(client, original=original, translation=translation)["key"])
        clock.advance(ms=1)

    found = client.get("/history", params={"q": "qué"}).json()["history"]
    assert [h["key"] for h in found] == [keys[2], keys[0]]
    found = client.get("/history", params={"q": "BUDDY"}).json()["history"]
    assert [h["key"] for h in found] == [keys[1]]
    assert client.get("/history", params={"q": "guayabo"}).json() == {"history": []}
    found = client.get("/history", params={"q": "how", "limit": 1}).json()["history"]
    assert [h["key"] for h in found] == [keys[2]]


# ============================================================================
# Tests: /favorite and /history/item
# ============================================================================

def test_favorite_toggle(api):
    client, _, _ = api
    key = _translate(client)["key"]
    resp = client.post("/favorite", json={"key": key, "favorite": True})
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["favorite"] is True
    assert client.get("/history").json()["history"][0]["favorite"] is True

    resp = client.post("/favorite", json={"key": key, "favorite": False})
    assert resp.json()["favorite"] is False


def test_favorite_missing_record(api):
    client, _, _ = api
    resp = client.post("/favorite", json={"key": "translation:1", "favorite": True})
    assert resp.status_code == 404


def test_favorite_requires_key(api):
    client, _, _ = api
    assert client.post("/favorite", json={"favorite": True}).status_code == 400
    assert client.post("/favorite", json={"key": "", "favorite": True}).status_code == 400


def test_delete_item(api):
    client, _, _ = api
    key = _translate(client)["key"]
    client.post("/favorite", json={"key": key, "favorite": True})

    resp = _delete(client, key)
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    assert client.get("/history").json()["history"] == []
    assert client.get("/flashcards/due").json()["flashcards"] == []
    assert client.post("/favorite", json={"key": key, "favorite": True}).status_code == 404
    assert _delete(client, key).status_code == 404


def test_delete_requires_key(api):
    client, _, _ = api
    assert _delete(client, "").status_code == 400


# ============================================================================
# Tests: /flashcards
# ============================================================================

def test_flashcards_due_and_review(api):
    client, clock, _ = api
    key = _translate(client)["key"]
    client.post("/favorite", json={"key": key, "favorite": True})

    cards = client.get("/flashcards/due").json()["flashcards"]
    assert len(cards) == 1
    assert cards[0]["key"] == key
    assert cards[0]["srs"] == {
        "easeFactor": 2.5, "repetitions": 0, "interval": 0,
        "nextReview": NOW, "lastReview": None,
    }

    resp = client.post("/flashcards/review", json={"key": key, "quality": 4})
    assert resp.status_code == 200
    body = resp.json()
    assert body == {"success": True, "nextReview": "2023-11-15T22:13:20.000Z", "interval": 1}

    assert client.get("/flashcards/due").json()["flashcards"] == []
    clock.advance(days=1)
    assert len(client.get("/flashcards/due").json()["flashcards"]) == 1

    resp = client.post("/flashcards/review", json={"key": key, "quality": 4})
    assert resp.json()["interval"] == 6


def test_repeated_perfect_reviews_stay_successful(api):
    client, _, _ = api
    key = _translate(client)["key"]
    client.post("/favorite", json={"key": key, "favorite": True})
    for _ in range(20):
        resp = client.post("/flashcards/review", json={"key": key, "quality": 5})
        assert resp.status_code == 200, resp.text
    assert resp.json()["nextReview"] == "9999-12-31T23:59:59.999Z"
    assert resp.json()["interval"] > 2_038_878


@pytest.mark.parametrize("quality", [-1, 6, "great"])
def test_review_invalid_quality(api, quality):
    client, _, _ = api
    key = _translate(client)["key"]
    resp = client.post("/flashcards/review", json={"key": key, "quality": quality})
    assert resp.status_code == 400


def test_review_missing_record(api):
    client, _, _ = api
    resp = client.post("/flashcards/review", json={"key": "translation:404", "quality": 3})
    assert resp.status_code == 404


def test_flashcard_stats(api):
    client, _, _ = api
    key = _translate(client)["key"]
    client.post("/favorite", json={"key": key, "favorite": True})
    client.post("/flashcards/review", json={"key": key, "quality": 5})
    assert client.get("/flashcards/stats").json() == {
        "favorites": 1, "due": 0, "scheduled": 1, "learning": 1,
    }


# ============================================================================
# Tests: SQL-backed store through the real dependencies
# ============================================================================

def test_sql_store_round_trip():
    reset_engine()
    with tempfile.TemporaryDirectory() as tmp:
        settings = Settings(database_url=f"sqlite:///{Path(tmp) / 'charla.db'}")
        init_db(settings)
        clock = FixedClock(NOW)
        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_clock] = lambda: clock
        try:
            client = TestClient(app)
            key = _translate(client)["key"]
            client.post("/favorite", json={"key": key, "favorite": True})
            assert client.get("/history").json()["history"][0]["favorite"] is True
            resp = client.post("/flashcards/review", json={"key": key, "quality": 2})
            assert resp.json()["interval"] == 1
            clock.advance(ms=DAY_MS)
            assert len(client.get("/flashcards/due").json()["flashcards"]) == 1
            assert _delete(client, key).status_code == 200
            assert client.get("/flashcards/due").json()["flashcards"] == []
        finally:
            app.dependency_overrides.clear()
            reset_engine()


def test_store_unavailable_read_is_empty_and_write_is_503():
    """Tables never created: reads degrade to empty, primary writes fail with 503."""
    reset_engine()
    with tempfile.TemporaryDirectory() as tmp:
        settings = Settings(database_url=f"sqlite:///{Path(tmp) / 'missing.db'}")
        app.dependency_overrides[get_settings] = lambda: settings
        try:
            client = TestClient(app)
            assert client.get("/history").json() == {"history": []}
            assert client.get("/flashcards/due").json() == {"flashcards": []}
            resp = client.post("/translate-result", json={
                "original": "hola", "translation": "hi", "fromLang": "es", "toLang": "en",
            })
            assert resp.status_code == 503
        finally:
            app.dependency_overrides.clear()
            reset_engine()


def test_startup_creates_tables_in_overridden_database():
    reset_engine()
    with tempfile.TemporaryDirectory() as tmp:
        settings = Settings(database_url=f"sqlite:///{Path(tmp) / 'startup.db'}")
        app.dependency_overrides[get_settings] = lambda: settings
        try:
            with TestClient(app) as client:
                assert (Path(tmp) / 'startup.db').exists()
                body = _translate(client)
                assert body["status"] == "ok"
                assert client.get("/history").json()["history"][0]["key"] == body["key"]
        finally:
            app.dependency_overrides.clear()
            reset_engine()
