"""Injectable time source.

Status derivation compares due dates against "today", and an aggregation over
many payments must see one instant. Services and the ledger therefore receive a
Clock and never call ``date.today()`` themselves.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime, time

from leasedesk.core.utils import utcnow


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current naive-UTC instant."""
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return utcnow()


class FixedClock(Clock):
    """Clock frozen at a given instant; tests move it explicitly."""

    def __init__(self, at: datetime | date):
        self._now = _as_datetime(at)

    def now(self) -> datetime:
        return self._now

    def set(self, at: datetime | date) -> None:
        self._now = _as_datetime(at)


def _as_datetime(value: datetime | date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time(12, 0))
