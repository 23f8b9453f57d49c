"""
Injectable time source.

Services, the cache and the forecast service take a Clock instead of calling
``datetime.now()``.  Sale dates, alert timestamps, ledger ``logged_at``
values and cache ages all come from the instance they were given, so tests
can place a sale on any day and expire a cache entry without sleeping.
"""

import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime, timedelta

_EPOCH = datetime(1970, 1, 1)


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        ...

    @abstractmethod
    def monotonic(self) -> float:
        """Seconds from an arbitrary origin; only differences mean anything."""


class SystemClock(Clock):
    """Wall time in UTC (timezone-aware) and the process monotonic clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def monotonic(self) -> float:
        return time.monotonic()


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    ``now()`` is stable between calls.  ``monotonic()`` follows ``now()``,
    so ``advance(300)`` ages cache entries by exactly 300 seconds.  Naive
    start times stay naive, which is what SQLite hands back.
    """

    def __init__(self, start: datetime | None = None):
        self._current = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._current

    def monotonic(self) -> float:
        epoch = _EPOCH.replace(tzinfo=self._current.tzinfo)
        return (self._current - epoch).total_seconds()

    def set_time(self, moment: datetime) -> None:
        self._current = moment

    def advance(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Advance one second and return the new time."""
        self.advance(1)
        return self._current
