"""Database engine management."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from server.config import Settings
from server.db.models import Base


_engines: dict[str, Engine] = {}


def get_engine(settings: Settings) -> Engine:
    url = settings.database_url
    engine = _engines.get(url)
    if engine is None:
        if url.startswith("sqlite"):
            engine = create_engine(url, connect_args={"check_same_thread": False})
        else:
            engine = create_engine(url, pool_pre_ping=True)
        _engines[url] = engine
    return engine


def reset_engine() -> None:
    """Dispose cached engines. Use between tests for isolation."""
    for engine in _engines.values():
        engine.dispose()
    _engines.clear()


def init_db(settings: Settings) -> None:
    """Create all tables."""
    engine = get_engine(settings)
    Base.metadata.create_all(bind=engine)
