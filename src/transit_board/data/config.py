from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BoardConfig(BaseSettings):
    """Configuration for the departure board.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    # static timetable
    gtfs_path: Path = Field(default=Path("data/gtfs"), alias="BOARD_GTFS_PATH")
    timezone: str = Field(default="Europe/Zagreb", alias="BOARD_TIMEZONE")
    night_cutoff_hour: int = Field(default=4, ge=0, le=23, alias="BOARD_NIGHT_CUTOFF_HOUR")
    cluster_tolerance_degrees: float = 0.02

    # realtime feed
    realtime_url: str = Field(
        default="https://zet.hr/gtfs-rt-protobuf", alias="BOARD_REALTIME_URL"
    )
    cache_ttl_seconds: float = Field(default=8.0, alias="BOARD_CACHE_TTL")
    fetch_timeout_seconds: float = Field(default=30.0, alias="BOARD_FETCH_TIMEOUT")
    verify_tls: bool = Field(default=True, alias="BOARD_VERIFY_TLS")

    # board window
    window_before_minutes: int = 10
    window_after_minutes: int = 90
    board_limit: int = 15
    departed_tolerance_minutes: int = 2

    # nearest station
    nearest_max_distance_km: float = 5.0


@lru_cache
def get_board_config() -> BoardConfig:
    """Get board configuration (cached singleton).

    Returns:
        BoardConfig with values from .env file or environment variables.
    """
    return BoardConfig()
