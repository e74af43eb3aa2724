"""Models for the built timetable and the departure board."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BoardStatus(str, Enum):
    """Whether a board entry reflects the timetable or a live prediction."""

    SCHEDULED = "SCHED"
    LIVE = "LIVE"


class StationCoordinate(BaseModel):
    """Representative coordinate of a logical station."""

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float


class DepartureRecord(BaseModel):
    """One scheduled departure of an active trip from a logical station."""

    model_config = ConfigDict(frozen=True)

    trip_id: str
    route_short_name: str | None = None
    headsign: str | None = None
    scheduled_minute_of_day: int = Field(
        description="Minutes since local midnight; exceeds 1439 for post-midnight service"
    )
    display_time: str = Field(description="Scheduled time as published, HH:MM")


class BoardEntry(BaseModel):
    """Upcoming departure as shown on a station board."""

    route_short_name: str | None = None
    headsign: str | None = None
    minutes_until_arrival: int
    display_time: str = Field(description="Expected time in HH:MM, wrapped into 00-23")
    status: BoardStatus
