"""
Outcome type for multi-step store writes.

A logical write (e.g. "record a translation") is several independent store
calls: the primary value write plus index updates. Nothing makes them atomic,
so each step either succeeds or is captured as a StepFailure. The primary step
raises on failure; secondary steps are collected here.

Example:
    outcome = WriteOutcome(value=record)
    outcome.attempt('history.zadd', store.zadd, HISTORY_SET, ts, key)
    if outcome.is_partial:
        logger.warning(...)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, TypeVar

from phrasebook.errors import StoreUnavailable

T = TypeVar('T')

logger = logging.getLogger('charla')


class OutcomeStatus(str, Enum):
    OK = 'ok'
    PARTIAL = 'partial'


@dataclass(frozen=True)
class StepFailure:
    """A secondary write step that did not apply."""
    step: str
    error: str


@dataclass
class WriteOutcome(Generic[T]):
    """Result of a multi-step write: the produced value plus failed steps."""

    value: Optional[T] = None
    failures: List[StepFailure] = field(default_factory=list)

    @property
    def status(self) -> OutcomeStatus:
        return OutcomeStatus.PARTIAL if self.failures else OutcomeStatus.OK

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)

    @property
    def warnings(self) -> List[str]:
        return [f"{f.step}: {f.error}" for f in self.failures]

    def attempt(self, step: str, fn: Callable[..., Any], *args, **kwargs) -> bool:
        """
        Run one secondary step. A StoreUnavailable is logged and recorded
        instead of propagating. Returns True if the step applied.
        """
        try:
            fn(*args, **kwargs)
        except StoreUnavailable as e:
            logger.warning("Secondary write %s failed: %s", step, e)
            self.failures.append(StepFailure(step=step, error=str(e)))
            return False
        return True
