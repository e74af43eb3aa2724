"""Pydantic models for GTFS entities."""

from pydantic import BaseModel


class RawStop(BaseModel):
    """Physical stop record as published in stops.txt."""

    stop_id: str
    stop_name: str
    stop_lat: float | None = None  # None when the feed has no usable coordinate
    stop_lon: float | None = None


class CalendarRow(BaseModel):
    """GTFS calendar entity for weekly service patterns."""

    service_id: str
    monday: int = 0
    tuesday: int = 0
    wednesday: int = 0
    thursday: int = 0
    friday: int = 0
    saturday: int = 0
    sunday: int = 0
    start_date: str  # YYYYMMDD
    end_date: str  # YYYYMMDD


class CalendarException(BaseModel):
    """GTFS calendar_dates entity for one-off service exceptions."""

    service_id: str
    date: str  # YYYYMMDD
    exception_type: int  # 1=added, 2=removed
