"""Tests for server/cli.py -- command line over the SQL store."""

import sys
import tempfile
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from phrasebook.history import HistoryStore
from phrasebook.kv import MemoryKeyValueStore
from server.cli import main
from server.config import Settings
from server.db.kv_store import SqlKeyValueStore
from server.db.session import get_engine, init_db, reset_engine
from server.dependencies import get_store


def _seed(url: str) -> str:
    settings = Settings(database_url=url)
    init_db(settings)
    history = HistoryStore(SqlKeyValueStore(get_engine(settings)))
    return history.record("¡Qué chimba!", "How awesome!", 'es', 'en').value.key


def test_history_favorite_review_flow(capsys):
    reset_engine()
    with tempfile.TemporaryDirectory() as tmp:
        url = f"sqlite:///{Path(tmp) / 'cli.db'}"
        key = _seed(url)
        try:
            assert main(['--db', url, 'history']) == 0
            out = capsys.readouterr().out
            assert "Qué chimba" in out
            assert key in out

            assert main(['--db', url, 'favorite', key]) == 0
            assert "favorite=True" in capsys.readouterr().out

            assert main(['--db', url, 'due']) == 0
            assert "1 card(s) due" in capsys.readouterr().out

            assert main(['--db', url, 'review', key, '4']) == 0
            assert "in 1 day(s)" in capsys.readouterr().out

            assert main(['--db', url, 'due']) == 0
            assert "No cards due" in capsys.readouterr().out

            assert main(['--db', url, 'stats']) == 0
            out = capsys.readouterr().out
            assert "Favorites: 1" in out
            assert "Scheduled: 1" in out

            assert main(['--db', url, 'delete', key]) == 0
            assert main(['--db', url, 'history']) == 0
            assert "No translations yet." in capsys.readouterr().out
        finally:
            reset_engine()


def test_errors_map_to_exit_codes(capsys):
    reset_engine()
    with tempfile.TemporaryDirectory() as tmp:
        url = f"sqlite:///{Path(tmp) / 'cli.db'}"
        key = _seed(url)
        try:
            assert main(['--db', url, 'review', key, '9']) == 2
            assert main(['--db', url, 'delete', 'translation:1']) == 3
            err = capsys.readouterr().err
            assert "between 0 and 5" in err
            assert "not found" in err
        finally:
            reset_engine()


def test_purge_and_no_command(capsys):
    reset_engine()
    with tempfile.TemporaryDirectory() as tmp:
        url = f"sqlite:///{Path(tmp) / 'cli.db'}"
        try:
            assert main(['--db', url, 'purge']) == 0
            assert "Purged 0 expired entries." in capsys.readouterr().out
            assert main([]) == 1
        finally:
            reset_engine()


def test_history_search(capsys):
    reset_engine()
    with tempfile.TemporaryDirectory() as tmp:
        url = f"sqlite:///{Path(tmp) / 'cli.db'}"
        key = _seed(url)
        try:
            assert main(['--db', url, 'history', '--search', 'CHIMBA']) == 0
            assert key in capsys.readouterr().out
            assert main(['--db', url, 'history', '-s', 'guayabo']) == 0
            assert "No translations match 'guayabo'." in capsys.readouterr().out
        finally:
            reset_engine()


def test_memory_mode_never_touches_database(capsys, monkeypatch):
    with tempfile.TemporaryDirectory() as tmp:
        db_path = Path(tmp) / 'unused.db'
        monkeypatch.setenv('DATABASE_URL', f"sqlite:///{db_path}")
        assert main(['--memory', 'history']) == 0
        assert "No translations yet." in capsys.readouterr().out
        assert main(['--memory', 'stats']) == 0
        assert "Favorites: 0" in capsys.readouterr().out
        assert main(['--memory', 'purge']) == 0
        assert "Purged 0 expired entries." in capsys.readouterr().out
        assert main(['--memory', 'delete', 'translation:1']) == 3
        assert not db_path.exists()


def test_serve_memory_overrides_store(monkeypatch):
    import uvicorn
    from server.app import app

    calls = []
    monkeypatch.setattr(uvicorn, 'run', lambda target, **kw: calls.append((target, kw)))
    try:
        assert main(['--memory', 'serve', '--port', '9123']) == 0
        [(target, kw)] = calls
        assert target is app
        assert kw == {'host': '127.0.0.1', 'port': 9123}
        assert isinstance(app.dependency_overrides[get_store](), MemoryKeyValueStore)
    finally:
        app.dependency_overrides.clear()
