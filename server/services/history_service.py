"""History and favorites service wrappers -- all return JSON-serializable dicts."""

from typing import Dict, List, Optional

from phrasebook.history import HistoryStore
from phrasebook.outcome import WriteOutcome


def _status(outcome: WriteOutcome) -> Dict:
    return {
        'status': outcome.status.value,
        'warnings': outcome.warnings,
    }


def record_translation(
    history: HistoryStore,
    original: str,
    translation: str,
    from_lang: str,
    to_lang: str,
    examples: Optional[List[Dict]] = None,
) -> Dict:
    """
    Store a finished translation.

    Returns:
        {key, timestamp, status, warnings}

    Raises:
        InvalidInput, StoreUnavailable (record write itself failed).
    """
    outcome = history.record(original, translation, from_lang, to_lang, examples=examples)
    return {
        'key': outcome.value.key,
        'timestamp': outcome.value.timestamp,
        **_status(outcome),
    }


def list_history(history: HistoryStore, limit: int, query: Optional[str] = None) -> Dict:
    return {'history': [r.to_dict() for r in history.list(limit, query=query)]}


def delete_item(history: HistoryStore, key: str) -> Dict:
    outcome = history.delete(key)
    return {'success': True, **_status(outcome)}


def set_favorite(history: HistoryStore, key: str, favorite: bool) -> Dict:
    outcome = history.set_favorite(key, favorite)
    return {'success': True, 'favorite': outcome.value.favorite, **_status(outcome)}
