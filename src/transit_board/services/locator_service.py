"""Nearest-station lookup over station representative coordinates."""

import math
from collections.abc import Mapping
from dataclasses import dataclass

from transit_board.models.board import StationCoordinate

# Earth's radius in kilometers for haversine calculation
EARTH_RADIUS_KM = 6371.0

DEFAULT_MAX_DISTANCE_KM = 5.0


@dataclass(frozen=True)
class NearestStation:
    name: str
    distance_km: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in kilometers.

    Args:
        lat1, lon1: First point coordinates in degrees.
        lat2, lon2: Second point coordinates in degrees.

    Returns:
        Distance in kilometers.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def nearest_station(
    lat: float,
    lon: float,
    coordinates: Mapping[str, StationCoordinate],
    max_distance_km: float = DEFAULT_MAX_DISTANCE_KM,
) -> NearestStation | None:
    """Find the station closest to a point.

    A linear scan over every station; station counts are in the low
    thousands.

    Returns:
        The closest station if it lies strictly within max_distance_km,
        otherwise None.
    """
    best: NearestStation | None = None
    for name, coord in coordinates.items():
        distance = haversine_km(lat, lon, coord.lat, coord.lon)
        if best is None or distance < best.distance_km:
            best = NearestStation(name=name, distance_km=distance)

    if best is not None and best.distance_km < max_distance_km:
        return best
    return None
