"""Clock abstraction for all "today" computations."""

from datetime import datetime
from typing import Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    """Supplies the current instant in the agency's local time zone."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock expressed in a named IANA time zone."""

    def __init__(self, timezone: str):
        self._tz = ZoneInfo(timezone)

    @property
    def tz(self) -> ZoneInfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock:
    """Clock frozen at a given instant. Used by tests and one-off builds."""

    def __init__(self, instant: datetime):
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant
