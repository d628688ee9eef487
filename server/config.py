"""Configuration for the Charla API server."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


def _env_int(name: str, current: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return current
    try:
        return int(value)
    except ValueError:
        return current


@dataclass
class Settings:
    """
    Store location, time zone and retention knobs.

    Defaults resolve relative to the project root.
    Every field is overridable at construction for testing;
    unset fields fall back to environment variables.
    """
    database_url: Optional[str] = None
    timezone: Optional[str] = None
    history_max_entries: int = 100
    history_page_size: int = 50
    record_ttl_days: int = 30
    schedule_ttl_days: int = 365
    cors_origins: List[str] = field(default_factory=list)

    def __post_init__(self):
        project_root = Path(__file__).resolve().parent.parent

        if self.database_url is None:
            self.database_url = os.environ.get(
                "DATABASE_URL", f"sqlite:///{project_root / 'charla.db'}"
            )
        if self.timezone is None:
            self.timezone = os.environ.get("CHARLA_TIMEZONE", "UTC")

        self.history_max_entries = _env_int("HISTORY_MAX_ENTRIES", self.history_max_entries)
        self.history_page_size = _env_int("HISTORY_PAGE_SIZE", self.history_page_size)
        self.record_ttl_days = _env_int("RECORD_TTL_DAYS", self.record_ttl_days)
        self.schedule_ttl_days = _env_int("SCHEDULE_TTL_DAYS", self.schedule_ttl_days)

        if not self.cors_origins:
            env_origins = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
            self.cors_origins = [o.strip() for o in env_origins.split(",") if o.strip()]

    @property
    def record_ttl_seconds(self) -> int:
        return self.record_ttl_days * 24 * 60 * 60

    @property
    def schedule_ttl_seconds(self) -> int:
        return self.schedule_ttl_days * 24 * 60 * 60
