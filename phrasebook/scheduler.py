"""SM-2 spaced repetition scheduler."""

import math
from fractions import Fraction

from phrasebook.clock import Clock
from phrasebook.errors import InvalidInput
from phrasebook.models import MIN_EASE_FACTOR, SchedulingState

PASSING_QUALITY = 3


def validate_quality(quality) -> int:
    """Reject anything that is not an int in [0, 5]."""
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidInput(f"Quality must be an integer, got {quality!r}")
    if not (0 <= quality <= 5):
        raise InvalidInput(f"Quality must be between 0 and 5, got {quality}")
    return quality


def _round_half_up(x: float) -> int:
    # 12.5 -> 13, not Python's banker's 12
    return int(math.floor(x + 0.5))


def _grow_interval(interval: int, ease_factor: float) -> int:
    try:
        return _round_half_up(interval * ease_factor)
    except OverflowError:
        # Past float range: exact arithmetic
        return math.floor(Fraction(interval) * Fraction(ease_factor) + Fraction(1, 2))


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """
    SM-2 ease adjustment:
        EF' = EF + (0.1 - (5-q) * (0.08 + (5-q) * 0.02)), floored at 1.3.
    """
    miss = 5 - quality
    return max(MIN_EASE_FACTOR, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def compute_next(
    quality: int,
    prior: SchedulingState,
    now_ms: int,
    clock: Clock,
) -> SchedulingState:
    """
    SM-2 spaced repetition scheduling.

    Args:
        quality: User grade 0-5 (0=blackout, 5=perfect). 3 is the lowest pass.
        prior:   Current scheduling state (never mutated)
        now_ms:  Review time, epoch milliseconds
        clock:   Provides calendar-day arithmetic for next_review

    Returns:
        New SchedulingState with last_review = now_ms.
    """
    validate_quality(quality)

    if quality >= PASSING_QUALITY:
        if prior.repetitions == 0:
            interval = 1
        elif prior.repetitions == 1:
            interval = 6
        else:
            interval = max(1, _grow_interval(prior.interval, prior.ease_factor))
        repetitions = prior.repetitions + 1
    else:
        # Lapse: start over
        interval = 1
        repetitions = 0

    return SchedulingState(
        ease_factor=next_ease_factor(prior.ease_factor, quality),
        repetitions=repetitions,
        interval=interval,
        next_review=clock.add_days(now_ms, interval),
        last_review=now_ms,
    )
