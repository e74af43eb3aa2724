"""Effective service-day arithmetic shared by the calendar and the board.

Feeds encode night-owl trips (e.g. "25:30:00") as part of the previous
service day. Before the night cutoff hour, the effective service date is
yesterday and the current time is expressed past 24:00 on that day.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta

MINUTES_PER_DAY = 24 * 60

# GTFS weekday column names indexed by weekday (0=Monday, 6=Sunday)
WEEKDAY_COLUMNS = [
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
]


@dataclass(frozen=True)
class EffectiveServiceTime:
    """A local instant expressed on its effective service day."""

    service_date: date
    minute_offset: int  # 0, or 1440 before the night cutoff
    current_minutes: int  # minutes since service-day midnight, offset included

    @property
    def date_str(self) -> str:
        """Service date in GTFS format (YYYYMMDD)."""
        return date_to_gtfs_format(self.service_date)

    @property
    def weekday_column(self) -> str:
        """calendar.txt column for the service date's weekday."""
        return WEEKDAY_COLUMNS[self.service_date.weekday()]


def date_to_gtfs_format(d: date) -> str:
    """Convert a date to GTFS date format (YYYYMMDD)."""
    return d.strftime("%Y%m%d")


def effective_service_time(now: datetime, cutoff_hour: int = 4) -> EffectiveServiceTime:
    """Place a local instant on its effective service day.

    Args:
        now: Instant in the agency's local time zone.
        cutoff_hour: Hour before which the previous day's service applies.

    Returns:
        EffectiveServiceTime with the service date and the minute axis
        aligned to GTFS times that may exceed 24:00.
    """
    minutes = now.hour * 60 + now.minute
    if now.hour < cutoff_hour:
        return EffectiveServiceTime(
            service_date=now.date() - timedelta(days=1),
            minute_offset=MINUTES_PER_DAY,
            current_minutes=minutes + MINUTES_PER_DAY,
        )
    return EffectiveServiceTime(
        service_date=now.date(),
        minute_offset=0,
        current_minutes=minutes,
    )
