"""Consolidate same-named physical stops into logical stations.

Stops sharing a trimmed name are grouped, then split into clusters by a
greedy first-fit pass: each stop joins the first cluster whose seed (first
member) lies within the tolerance box, otherwise it seeds a new cluster.
Only seeds are compared, so the result depends on feed order.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from transit_board.models.board import StationCoordinate
from transit_board.models.gtfs import RawStop

logger = logging.getLogger(__name__)

# Roughly 1.5-2 km at mid latitudes
DEFAULT_TOLERANCE_DEGREES = 0.02

UNKNOWN_STOP_NAME = "Unknown stop"


@dataclass
class StationClusters:
    """Result of clustering raw stops into logical stations."""

    stop_to_station: dict[str, str] = field(default_factory=dict)
    coordinates: dict[str, StationCoordinate] = field(default_factory=dict)
    station_names: list[str] = field(default_factory=list)


def _parse_coordinate(value: str | None) -> float | None:
    try:
        coordinate = float(value or "")
    except ValueError:
        return None
    return coordinate if math.isfinite(coordinate) else None


def parse_raw_stops(records: Iterable[Mapping[str, str]]) -> list[RawStop]:
    """Convert stops.txt records into RawStop models.

    Records without a stop_id are skipped. A stop with a missing or
    unparseable coordinate is kept with no coordinates; it then seeds a
    station of its own.
    """
    stops: list[RawStop] = []
    skipped = 0
    without_coordinates = 0
    for record in records:
        stop_id = (record.get("stop_id") or "").strip()
        if not stop_id:
            skipped += 1
            continue
        lat = _parse_coordinate(record.get("stop_lat"))
        lon = _parse_coordinate(record.get("stop_lon"))
        if lat is None or lon is None:
            without_coordinates += 1
            lat = lon = None
        stops.append(
            RawStop(
                stop_id=stop_id,
                stop_name=(record.get("stop_name") or "").strip() or UNKNOWN_STOP_NAME,
                stop_lat=lat,
                stop_lon=lon,
            )
        )
    if skipped:
        logger.warning(f"Skipped {skipped:,} stops without stop_id")
    if without_coordinates:
        logger.warning(f"{without_coordinates:,} stops have no usable coordinates")
    return stops


def _within_tolerance(stop: RawStop, seed: RawStop, tolerance: float) -> bool:
    if None in (stop.stop_lat, stop.stop_lon, seed.stop_lat, seed.stop_lon):
        return False
    return (
        abs(stop.stop_lat - seed.stop_lat) < tolerance
        and abs(stop.stop_lon - seed.stop_lon) < tolerance
    )


def cluster_stations(
    stops: Iterable[RawStop],
    tolerance: float = DEFAULT_TOLERANCE_DEGREES,
) -> StationClusters:
    """Group raw stops into logical stations.

    Args:
        stops: Physical stops in feed order.
        tolerance: Bounding-box half width in decimal degrees, applied to
            latitude and longitude independently.

    Returns:
        StationClusters with the stop_id -> station mapping, each station's
        seed coordinate and the sorted station names.
    """
    by_name: dict[str, list[RawStop]] = {}
    for stop in stops:
        name = stop.stop_name.strip() or UNKNOWN_STOP_NAME
        by_name.setdefault(name, []).append(stop)

    result = StationClusters()
    for name, group in by_name.items():
        clusters: list[list[RawStop]] = []
        for stop in group:
            for cluster in clusters:
                if _within_tolerance(stop, cluster[0], tolerance):
                    cluster.append(stop)
                    break
            else:
                clusters.append([stop])

        for k, cluster in enumerate(clusters, start=1):
            station = f"{name} ({k})" if len(clusters) > 1 else name
            seed = cluster[0]
            if seed.stop_lat is not None and seed.stop_lon is not None:
                # a suffixed name can collide with a literal stop name; first seed wins
                result.coordinates.setdefault(
                    station, StationCoordinate(lat=seed.stop_lat, lon=seed.stop_lon)
                )
            for stop in cluster:
                result.stop_to_station[stop.stop_id] = station

    result.station_names = sorted(set(result.stop_to_station.values()))
    logger.info(
        f"Clustered {len(result.stop_to_station):,} stops into "
        f"{len(result.station_names):,} stations"
    )
    return result
