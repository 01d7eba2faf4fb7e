"""Clock abstraction

All time-dependent rules (past-start validation, grace periods, sweep
filters, cancellation cut-off) read "now" from a Clock so that they can be
driven deterministically.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Current local wall time, timezone-naive"""
        pass


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now()


class FixedClock(Clock):
    """Clock frozen at a given instant until moved explicitly"""

    def __init__(self, instant: Optional[datetime] = None):
        self._instant = instant or datetime.now().replace(second=0, microsecond=0)

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant

    def advance(self, delta: timedelta) -> datetime:
        self._instant += delta
        return self._instant
