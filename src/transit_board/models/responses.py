from pydantic import BaseModel, Field

from transit_board.models.board import BoardEntry


class StationListResponse(BaseModel):
    stations: list[str] = Field(description="Canonical station names, sorted")
    count: int = Field(description="Number of stations")
    service_date: str = Field(description="Service day of the loaded timetable (YYYYMMDD)")


class DepartureBoardResponse(BaseModel):
    """Ranked upcoming departures for one station."""

    station: str | None = Field(
        default=None, description="Canonical station name, None if the query matched none"
    )
    departures: list[BoardEntry] = []
    count: int = Field(default=0, description="Number of departures returned")
    service_date: str = Field(default="", description="Service day (YYYYMMDD)")
    live_count: int = Field(default=0, description="Number of departures with live delay data")


class DestinationsResponse(BaseModel):
    station: str | None = None
    destinations: list[str] = []
    count: int = 0


class NearestStationResponse(BaseModel):
    name: str | None = Field(
        default=None, description="Closest station, None if nothing within range"
    )
    distance_km: float | None = Field(default=None, description="Distance to the station")
