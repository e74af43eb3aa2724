"""MCP tools for departure boards."""

from transit_board.app import mcp
from transit_board.models.responses import DepartureBoardResponse, DestinationsResponse
from transit_board.services.station_service import (
    get_departure_board as _get_departure_board,
)
from transit_board.services.station_service import get_destinations as _get_destinations


@mcp.tool()
async def get_departure_board(station: str) -> DepartureBoardResponse:
    """Get upcoming departures from a station with live delays.

    Shows departures scheduled from 10 minutes ago to 90 minutes ahead,
    shifted by live delays when the realtime feed has them, ranked by
    expected departure and capped at 15 entries.

    Args:
        station: Station name as listed by list_stations (case-insensitive).

    Returns:
        DepartureBoardResponse; empty if the station is unknown.
    """
    return await _get_departure_board(station)


@mcp.tool()
async def get_destinations(station: str) -> DestinationsResponse:
    """List the destinations (headsigns) served from a station today.

    Args:
        station: Station name as listed by list_stations (case-insensitive).
    """
    return await _get_destinations(station)
