"""Board composer: merge the static timetable with live delays.

Implements "static-first" with "graceful degradation": every departure in
the window is shown from the timetable, and trips present in the live delay
map are shifted and marked LIVE.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime

from transit_board.models.board import BoardEntry, BoardStatus, DepartureRecord
from transit_board.services.service_time import effective_service_time


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""
    return math.floor(value + 0.5)


def delay_to_minutes(delay_seconds: int) -> int:
    """Convert a delay in seconds to whole minutes."""
    return round_half_up(delay_seconds / 60)


def minutes_to_display(minutes: int) -> str:
    """Format a minute-of-day value as HH:MM, wrapping hours past 24:00.

    Examples:
        minutes_to_display(605) -> "10:05"
        minutes_to_display(1505) -> "01:05"
    """
    hours, mins = divmod(minutes, 60)
    return f"{hours % 24:02d}:{mins:02d}"


def compose_board(
    departures: Iterable[DepartureRecord],
    live_delays: Mapping[str, int],
    now: datetime,
    window_before: int = 10,
    window_after: int = 90,
    cap: int = 15,
    cutoff_hour: int = 4,
    departed_tolerance: int = 2,
) -> list[BoardEntry]:
    """Build the ranked board of upcoming departures.

    Args:
        departures: A station's departures, ascending by scheduled minute.
        live_delays: trip_id -> delay seconds from the realtime feed.
        now: Current instant in the agency's local time zone.
        window_before: Minutes before now a scheduled departure may be.
        window_after: Minutes after now a scheduled departure may be.
        cap: Maximum number of entries returned.
        cutoff_hour: Night cutoff hour, see service_time.
        departed_tolerance: Minutes a departed trip stays on the board.

    Returns:
        Entries sorted by minutes until departure, using the delay-adjusted
        time, truncated to ``cap``.
    """
    current = effective_service_time(now, cutoff_hour).current_minutes
    earliest = current - window_before
    latest = current + window_after

    board: list[BoardEntry] = []
    for departure in departures:
        scheduled = departure.scheduled_minute_of_day
        if scheduled < earliest or scheduled > latest:
            continue

        delay = live_delays.get(departure.trip_id)
        if delay is not None:
            final = scheduled + delay_to_minutes(delay)
            status = BoardStatus.LIVE
        else:
            final = scheduled
            status = BoardStatus.SCHEDULED

        minutes_until = final - current
        if minutes_until < -departed_tolerance:
            continue

        board.append(
            BoardEntry(
                route_short_name=departure.route_short_name,
                headsign=departure.headsign,
                minutes_until_arrival=minutes_until,
                display_time=minutes_to_display(final),
                status=status,
            )
        )

    # stable: equal ETAs keep timetable order
    board.sort(key=lambda entry: entry.minutes_until_arrival)
    return board[:cap]


def list_destinations(departures: Iterable[DepartureRecord]) -> list[str]:
    """Distinct headsigns served by a station's departures, sorted."""
    return sorted({d.headsign for d in departures if d.headsign})
