"""Data models: TranslationRecord, Example and SchedulingState dataclasses."""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

LANGUAGES = ('en', 'es')

RECORD_KEY_PREFIX = 'translation:'
SCHEDULE_KEY_PREFIX = 'srs:'
HISTORY_SET = 'translation:history'
FAVORITES_SET = 'translation:favorites'

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


def make_record_key(timestamp_ms: int) -> str:
    """Storage key for a translation created at timestamp_ms."""
    return f"{RECORD_KEY_PREFIX}{timestamp_ms}"


def make_schedule_key(record_key: str) -> str:
    """Storage key for the scheduling state of a translation."""
    return f"{SCHEDULE_KEY_PREFIX}{record_key}"


@dataclass
class Example:
    """A usage example: sentence in the target language plus its English gloss."""
    text: str
    english: str = ''

    def to_dict(self) -> Dict:
        return {'text': self.text, 'english': self.english}

    @classmethod
    def from_dict(cls, data: Dict) -> 'Example':
        return cls(text=data.get('text', ''), english=data.get('english', ''))


@dataclass
class TranslationRecord:
    """
    One translation in the history.

    Serialized with the camelCase field names the PWA reads
    (fromLang, toLang); `key` and `favorite` may be absent in older data.
    """
    key: str
    original: str
    translation: str
    from_lang: str
    to_lang: str
    timestamp: int
    examples: List[Example] = field(default_factory=list)
    favorite: bool = False

    def to_dict(self) -> Dict:
        return {
            'key': self.key,
            'original': self.original,
            'translation': self.translation,
            'examples': [e.to_dict() for e in self.examples],
            'fromLang': self.from_lang,
            'toLang': self.to_lang,
            'timestamp': self.timestamp,
            'favorite': self.favorite,
        }

    @classmethod
    def from_dict(cls, data: Dict, key: Optional[str] = None) -> 'TranslationRecord':
        examples = [
            Example.from_dict(e) if isinstance(e, dict) else e
            for e in (data.get('examples') or [])
        ]
        return cls(
            key=data.get('key') or key or '',
            original=data.get('original', ''),
            translation=data.get('translation', ''),
            from_lang=data.get('fromLang', ''),
            to_lang=data.get('toLang', ''),
            timestamp=int(data.get('timestamp') or 0),
            examples=examples,
            favorite=bool(data.get('favorite', False)),
        )

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on the text, translation and examples."""
        needle = query.casefold()
        fields = [self.original, self.translation]
        for e in self.examples:
            fields.extend((e.text, e.english))
        return any(needle in (f or '').casefold() for f in fields)

    def with_favorite(self, favorite: bool) -> 'TranslationRecord':
        return replace(self, favorite=favorite)


@dataclass(frozen=True)
class SchedulingState:
    """SM-2 scheduling metadata for one favorited translation."""
    ease_factor: float = DEFAULT_EASE_FACTOR
    repetitions: int = 0
    interval: int = 0
    next_review: int = 0
    last_review: Optional[int] = None

    @classmethod
    def initial(cls, now_ms: int) -> 'SchedulingState':
        """State of a card that has never been reviewed: due immediately."""
        return cls(next_review=now_ms)

    def is_due(self, now_ms: int) -> bool:
        return self.next_review <= now_ms

    def to_dict(self) -> Dict:
        return {
            'easeFactor': self.ease_factor,
            'repetitions': self.repetitions,
            'interval': self.interval,
            'nextReview': self.next_review,
            'lastReview': self.last_review,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'SchedulingState':
        last = data.get('lastReview')
        return cls(
            ease_factor=float(data.get('easeFactor', DEFAULT_EASE_FACTOR)),
            repetitions=int(data.get('repetitions', 0)),
            interval=int(data.get('interval', 0)),
            next_review=int(data.get('nextReview', 0)),
            last_review=int(last) if last is not None else None,
        )


@dataclass
class DueCard:
    """A favorited translation paired with its (possibly default) schedule."""
    record: TranslationRecord
    state: SchedulingState

    def to_dict(self) -> Dict:
        d = self.record.to_dict()
        d['srs'] = self.state.to_dict()
        return d


@dataclass
class ReviewSummary:
    """What submit_review reports back: when to see the card again."""
    key: str
    next_review: int
    interval: int
    state: SchedulingState


@dataclass
class DeckStats:
    favorites: int = 0
    due: int = 0
    scheduled: int = 0
    learning: int = 0

    def to_dict(self) -> Dict:
        return {
            'favorites': self.favorites,
            'due': self.due,
            'scheduled': self.scheduled,
            'learning': self.learning,
        }
