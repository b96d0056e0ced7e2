"""
Clock abstraction so booking rules can be evaluated at a fixed instant.

All instants are timezone-aware UTC datetimes. Venue-local times are
converted with the venue's timezone where they are compared.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


class Clock(ABC):
    """Source of the current instant."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock pinned to a settable instant. Used by tests and tooling."""

    def __init__(self, instant: datetime):
        self.set(instant)

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._instant = instant.astimezone(timezone.utc)

    def advance(self, delta: timedelta) -> None:
        self._instant = self._instant + delta

    def now(self) -> datetime:
        return self._instant


_system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency; override in tests with a FixedClock."""
    return _system_clock
