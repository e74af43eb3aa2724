"""Station queries against the published snapshot.

Unknown stations are not an error: they produce empty results.
"""

import logging

from transit_board.data.config import BoardConfig, get_board_config
from transit_board.models.board import BoardStatus
from transit_board.models.responses import (
    DepartureBoardResponse,
    DestinationsResponse,
    NearestStationResponse,
    StationListResponse,
)
from transit_board.services.board_service import compose_board, list_destinations
from transit_board.services.locator_service import nearest_station
from transit_board.services.realtime_service import get_live_delays
from transit_board.services.snapshot_service import SnapshotStore, get_store

logger = logging.getLogger(__name__)


async def list_stations(store: SnapshotStore | None = None) -> StationListResponse:
    """List every logical station in the published timetable."""
    snapshot = (store or get_store()).ensure_current()
    return StationListResponse(
        stations=list(snapshot.station_names),
        count=len(snapshot.station_names),
        service_date=snapshot.service_date,
    )


async def get_departure_board(
    station: str,
    store: SnapshotStore | None = None,
    config: BoardConfig | None = None,
) -> DepartureBoardResponse:
    """Get the ranked upcoming departures for a station.

    Args:
        station: Station name, matched case-insensitively after trimming.
        store: Snapshot store override (defaults to the singleton).
        config: Configuration override (defaults to the singleton).

    Returns:
        DepartureBoardResponse; empty when the station is unknown.
    """
    store = store or get_store()
    config = config or get_board_config()
    snapshot = store.ensure_current()

    name = snapshot.resolve_station(station)
    if name is None:
        logger.debug(f"Unknown station: {station!r}")
        return DepartureBoardResponse(service_date=snapshot.service_date)

    live_delays = await get_live_delays()
    entries = compose_board(
        snapshot.departures_for(name),
        live_delays,
        store.clock.now(),
        window_before=config.window_before_minutes,
        window_after=config.window_after_minutes,
        cap=config.board_limit,
        cutoff_hour=config.night_cutoff_hour,
        departed_tolerance=config.departed_tolerance_minutes,
    )
    return DepartureBoardResponse(
        station=name,
        departures=entries,
        count=len(entries),
        service_date=snapshot.service_date,
        live_count=sum(1 for e in entries if e.status is BoardStatus.LIVE),
    )


async def get_destinations(station: str, store: SnapshotStore | None = None) -> DestinationsResponse:
    """List the distinct headsigns served at a station today."""
    snapshot = (store or get_store()).ensure_current()
    name = snapshot.resolve_station(station)
    if name is None:
        return DestinationsResponse()
    destinations = list_destinations(snapshot.departures_for(name))
    return DestinationsResponse(station=name, destinations=destinations, count=len(destinations))


async def find_nearest_station(
    lat: float,
    lon: float,
    store: SnapshotStore | None = None,
    config: BoardConfig | None = None,
) -> NearestStationResponse:
    """Find the closest station to a coordinate within the configured range."""
    config = config or get_board_config()
    snapshot = (store or get_store()).ensure_current()
    match = nearest_station(lat, lon, snapshot.coordinates, config.nearest_max_distance_km)
    if match is None:
        return NearestStationResponse()
    return NearestStationResponse(name=match.name, distance_km=round(match.distance_km, 3))
