"""MCP tools for station lookup."""

from transit_board.app import mcp
from transit_board.models.responses import NearestStationResponse, StationListResponse
from transit_board.services.station_service import (
    find_nearest_station as _find_nearest_station,
)
from transit_board.services.station_service import list_stations as _list_stations


@mcp.tool()
async def list_stations() -> StationListResponse:
    """List every station in today's timetable, sorted by name.

    Same-named stops far apart are listed separately with a numeric
    suffix, e.g. "Glavni kolodvor (1)" and "Glavni kolodvor (2)".
    """
    return await _list_stations()


@mcp.tool()
async def find_nearest_station(lat: float, lon: float) -> NearestStationResponse:
    """Find the station closest to a coordinate.

    Args:
        lat: Latitude in decimal degrees.
        lon: Longitude in decimal degrees.

    Returns:
        NearestStationResponse with the station and its distance in km,
        or an empty response if no station is within 5 km.
    """
    if not -90 <= lat <= 90 or not -180 <= lon <= 180:
        return NearestStationResponse()
    return await _find_nearest_station(lat, lon)
