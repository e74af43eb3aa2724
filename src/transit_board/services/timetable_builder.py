"""Build per-station departure lists from the static GTFS tables.

stop_times.txt is by far the largest table, so it is consumed as a row
stream: the header is resolved once by column name and rows of trips that
do not run on the service day are dropped after reading a single cell.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field

from transit_board.data.gtfs_source import build_header_index
from transit_board.models.board import DepartureRecord

logger = logging.getLogger(__name__)

# Sorts after every real departure, including post-midnight ones
MISSING_TIME_MINUTES = 9999

STOP_TIMES_COLUMNS = ["trip_id", "departure_time", "stop_id"]


@dataclass
class Timetable:
    """Departures per logical station, each list ascending by minute."""

    departures: dict[str, list[DepartureRecord]] = field(default_factory=dict)
    station_names: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class _ActiveTrip:
    headsign: str | None
    route_short_name: str | None


def parse_departure_minutes(time_str: str | None) -> int:
    """Convert a GTFS "HH:MM:SS" time to minutes since service-day midnight.

    Hours may exceed 23 for trips running past midnight. Seconds are
    ignored. Empty or malformed values map to MISSING_TIME_MINUTES.
    """
    if not time_str:
        return MISSING_TIME_MINUTES
    parts = time_str.strip().split(":")
    if len(parts) < 2:
        return MISSING_TIME_MINUTES
    try:
        return int(parts[0]) * 60 + int(parts[1])
    except ValueError:
        return MISSING_TIME_MINUTES


def _active_trips(
    routes: Iterable[Mapping[str, str]],
    trips: Iterable[Mapping[str, str]],
    active_service_ids: set[str],
) -> dict[str, _ActiveTrip]:
    route_names = {
        route["route_id"]: route.get("route_short_name") or None
        for route in routes
        if route.get("route_id")
    }
    active: dict[str, _ActiveTrip] = {}
    for trip in trips:
        trip_id = trip.get("trip_id")
        if not trip_id or trip.get("service_id") not in active_service_ids:
            continue
        active[trip_id] = _ActiveTrip(
            headsign=trip.get("trip_headsign") or None,
            route_short_name=route_names.get(trip.get("route_id", "")),
        )
    return active


def build_timetable(
    routes: Iterable[Mapping[str, str]],
    trips: Iterable[Mapping[str, str]],
    stop_times_rows: Iterable[list[str]],
    active_service_ids: set[str],
    stop_to_station: Mapping[str, str],
) -> Timetable:
    """Build the departure index for every logical station.

    Args:
        routes: routes.txt records.
        trips: trips.txt records.
        stop_times_rows: Raw stop_times.txt rows, header first. Consumed
            lazily, one row at a time.
        active_service_ids: Service ids running on the service day.
        stop_to_station: stop_id -> logical station name.

    Returns:
        Timetable with a (possibly empty) sorted list for every station.
    """
    active = _active_trips(routes, trips, active_service_ids)
    logger.info(f"{len(active):,} active trips")

    departures: dict[str, list[DepartureRecord]] = {
        station: [] for station in stop_to_station.values()
    }
    timetable = Timetable(departures=departures, station_names=sorted(departures))

    rows: Iterator[list[str]] = iter(stop_times_rows)
    header = next(rows, None)
    if header is None:
        logger.warning("stop_times is empty, no departures built")
        return timetable

    header_index = build_header_index(header, STOP_TIMES_COLUMNS)
    missing = [col for col in STOP_TIMES_COLUMNS if col not in header_index]
    if missing:
        logger.error(f"stop_times missing columns: {', '.join(missing)}")
        return timetable

    idx_trip = header_index["trip_id"]
    idx_time = header_index["departure_time"]
    idx_stop = header_index["stop_id"]
    width = max(idx_trip, idx_time, idx_stop) + 1

    kept = 0
    skipped = 0
    for row in rows:
        if len(row) < width:
            skipped += 1
            continue
        trip = active.get(row[idx_trip].strip())
        if trip is None:
            continue
        station = stop_to_station.get(row[idx_stop].strip())
        if station is None:
            skipped += 1
            continue
        departure_time = row[idx_time].strip()
        departures[station].append(
            DepartureRecord(
                trip_id=row[idx_trip].strip(),
                route_short_name=trip.route_short_name,
                headsign=trip.headsign,
                scheduled_minute_of_day=parse_departure_minutes(departure_time),
                display_time=departure_time[:5],
            )
        )
        kept += 1

    for station_departures in departures.values():
        station_departures.sort(key=lambda d: d.scheduled_minute_of_day)

    logger.info(
        f"Built {kept:,} departures across {len(departures):,} stations"
        + (f" (skipped {skipped:,} rows)" if skipped else "")
    )
    return timetable
