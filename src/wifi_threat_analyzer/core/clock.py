"""
Clock abstraction.

Every timestamp the engine records or compares against is read from an
injected clock so temporal detectors (decay weighting, cycling, timing
replacement, 24-hour history windows) can be driven deterministically.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional


class Clock(ABC):
    """Source of the current time."""

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    """Wall clock."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock(Clock):
    """Manually driven clock for tests and replays."""

    def __init__(self, start: Optional[datetime] = None):
        self._now = start or datetime(2024, 1, 1, 12, 0, 0)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        with self._lock:
            return self._now

    def set(self, moment: datetime) -> None:
        with self._lock:
            self._now = moment

    def advance(self, seconds: float = 0.0, minutes: float = 0.0, hours: float = 0.0) -> datetime:
        with self._lock:
            self._now = self._now + timedelta(seconds=seconds, minutes=minutes, hours=hours)
            return self._now
