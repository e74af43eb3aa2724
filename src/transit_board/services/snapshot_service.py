"""Build and publish the in-memory timetable snapshot.

A snapshot is rebuilt from scratch from the GTFS source and published by
swapping a single reference. Readers keep using the previous snapshot
while a rebuild runs in a worker thread; a published snapshot is never
mutated.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from types import MappingProxyType

from transit_board.data.clock import Clock, SystemClock
from transit_board.data.config import BoardConfig, get_board_config
from transit_board.data.gtfs_source import (
    CALENDAR_DATES_FILE,
    CALENDAR_FILE,
    ROUTES_FILE,
    STOP_TIMES_FILE,
    STOPS_FILE,
    TRIPS_FILE,
    GTFSSource,
)
from transit_board.models.board import DepartureRecord, StationCoordinate
from transit_board.services.calendar_service import (
    active_service_ids,
    parse_calendar_rows,
    parse_exception_rows,
)
from transit_board.services.service_time import effective_service_time
from transit_board.services.station_clusterer import cluster_stations, parse_raw_stops
from transit_board.services.timetable_builder import build_timetable

logger = logging.getLogger(__name__)

SnapshotSink = Callable[["Snapshot"], None]


@dataclass(frozen=True)
class Snapshot:
    """Read-only timetable for one service day."""

    station_names: tuple[str, ...] = ()
    departures: Mapping[str, tuple[DepartureRecord, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    coordinates: Mapping[str, StationCoordinate] = field(
        default_factory=lambda: MappingProxyType({})
    )
    service_date: str = ""  # YYYYMMDD, "" until the first build
    built_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return self.built_at is None

    def resolve_station(self, query: str | None) -> str | None:
        """Match a station name case-insensitively after trimming."""
        if not query:
            return None
        cleaned = query.strip().lower()
        for name in self.station_names:
            if name.lower() == cleaned:
                return name
        return None

    def departures_for(self, station: str) -> tuple[DepartureRecord, ...]:
        return self.departures.get(station, ())


def build_snapshot(source: GTFSSource, now: datetime, config: BoardConfig) -> Snapshot:
    """Read every GTFS table and build a snapshot for the service day of ``now``.

    Blocking: streams stop_times.txt from disk. Run it off the event loop.
    """
    service_time = effective_service_time(now, config.night_cutoff_hour)
    logger.info(f"Building timetable for service day {service_time.date_str}...")

    routes = source.read_records(ROUTES_FILE)
    trips = source.read_records(TRIPS_FILE)
    stops = parse_raw_stops(source.iter_records(STOPS_FILE))
    calendar = parse_calendar_rows(source.iter_records(CALENDAR_FILE))
    exceptions = parse_exception_rows(source.iter_records(CALENDAR_DATES_FILE))

    services = active_service_ids(now, calendar, exceptions, config.night_cutoff_hour)
    clusters = cluster_stations(stops, config.cluster_tolerance_degrees)
    timetable = build_timetable(
        routes,
        trips,
        source.iter_rows(STOP_TIMES_FILE),
        services,
        clusters.stop_to_station,
    )

    snapshot = Snapshot(
        station_names=tuple(clusters.station_names),
        departures=MappingProxyType(
            {station: tuple(deps) for station, deps in timetable.departures.items()}
        ),
        coordinates=MappingProxyType(dict(clusters.coordinates)),
        service_date=service_time.date_str,
        built_at=now,
    )
    logger.info(f"Timetable ready: {len(snapshot.station_names):,} stations")
    return snapshot


def seconds_until_next_refresh(now: datetime, cutoff_hour: int) -> float:
    """Seconds from ``now`` until the next occurrence of the cutoff hour."""
    next_refresh = now.replace(hour=cutoff_hour, minute=0, second=0, microsecond=0)
    if now >= next_refresh:
        next_refresh += timedelta(days=1)
    # elapsed time, not wall-clock difference, across DST changes
    return next_refresh.timestamp() - now.timestamp()


class SnapshotStore:
    """Owns the published snapshot and its refresh cycle.

    Usage:
        store = SnapshotStore(config)
        await store.refresh()
        snapshot = store.current
    """

    def __init__(
        self,
        config: BoardConfig,
        clock: Clock | None = None,
        on_publish: SnapshotSink | None = None,
    ):
        """Initialize the store with an empty snapshot.

        Args:
            config: Board configuration (GTFS path, cutoff hour, tolerances).
            clock: Local-time clock. Defaults to the configured time zone.
            on_publish: Optional sink called with every published snapshot.
        """
        self._config = config
        self._clock = clock or SystemClock(config.timezone)
        self._on_publish = on_publish
        self._current = Snapshot()
        self._refresh_lock = asyncio.Lock()
        self._pending: asyncio.Task[bool] | None = None
        self._attempted_date: str | None = None

    @property
    def current(self) -> Snapshot:
        return self._current

    @property
    def clock(self) -> Clock:
        return self._clock

    def publish(self, snapshot: Snapshot) -> None:
        """Replace the published snapshot in one step."""
        self._current = snapshot
        if self._on_publish is not None:
            self._on_publish(snapshot)

    async def refresh(self, only_if_stale: bool = False) -> bool:
        """Rebuild the snapshot in a worker thread and publish it.

        Args:
            only_if_stale: Skip the rebuild when the published snapshot
                already covers the current service day. Rollover triggers
                use this so a rebuild queued behind another one is dropped.

        Returns:
            True if a new snapshot was published. On failure the previous
            snapshot stays in place.
        """
        async with self._refresh_lock:
            now = self._clock.now()
            service_date = self._service_date(now)
            if only_if_stale and self._current.service_date == service_date:
                logger.debug(f"Timetable for {service_date} already published")
                return False
            self._attempted_date = service_date
            try:
                source = GTFSSource(self._config.gtfs_path)
                snapshot = await asyncio.to_thread(build_snapshot, source, now, self._config)
            except Exception:
                logger.exception("Timetable rebuild failed, keeping previous snapshot")
                return False
            self.publish(snapshot)
            return True

    def _service_date(self, now: datetime) -> str:
        return effective_service_time(now, self._config.night_cutoff_hour).date_str

    def is_stale(self) -> bool:
        """True when the published snapshot is for another service day."""
        return self._current.service_date != self._service_date(self._clock.now())

    def ensure_current(self) -> Snapshot:
        """Return the published snapshot, scheduling a rebuild if it is stale.

        The rebuild runs in the background; the caller gets the snapshot
        that is published right now. At most one rebuild is scheduled, and
        a service day whose rebuild already failed is not retried until the
        next daily refresh.
        """
        service_date = self._service_date(self._clock.now())
        if (
            self._current.service_date != service_date
            and self._attempted_date != service_date
            and (self._pending is None or self._pending.done())
        ):
            logger.info("Service day rolled over, scheduling timetable rebuild")
            self._pending = asyncio.create_task(self.refresh(only_if_stale=True))
        return self._current

    async def wait_pending(self) -> None:
        """Wait for a background rebuild started by ensure_current, if any."""
        if self._pending is not None:
            await self._pending

    async def run_refresh_loop(self) -> None:
        """Rebuild once a day at the night cutoff hour, forever."""
        while True:
            delay = seconds_until_next_refresh(
                self._clock.now(), self._config.night_cutoff_hour
            )
            logger.info(f"Next timetable refresh in {delay / 3600:.1f}h")
            # wake just past the cutoff so the new service day is current
            await asyncio.sleep(delay + 1)
            await self.refresh(only_if_stale=True)


# Module-level store (lazy-initialized)
_store: SnapshotStore | None = None


def get_store() -> SnapshotStore:
    """Get or create the snapshot store singleton."""
    global _store
    if _store is None:
        _store = SnapshotStore(get_board_config())
    return _store


def set_store(store: SnapshotStore) -> None:
    """Install a store as the singleton (used by the server and tests)."""
    global _store
    _store = store


def reset_store() -> None:
    """Drop the snapshot store singleton."""
    global _store
    _store = None
