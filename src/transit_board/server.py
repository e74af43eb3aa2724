import argparse
import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel

from transit_board.app import mcp
from transit_board.data.config import BoardConfig, get_board_config
from transit_board.data.clock import SystemClock
from transit_board.data.gtfs_source import GTFSSource

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    service_date: str = ""


@mcp.tool()
def health() -> HealthResponse:
    """Check if the transit board server is running and healthy.

    Returns the server status, version, current timestamp and the service
    day of the loaded timetable (empty until the first build completes).
    """
    from transit_board import __version__
    from transit_board.services.snapshot_service import get_store

    return HealthResponse(
        status="ok",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        service_date=get_store().current.service_date,
    )


def run_build(gtfs_path: Path, config: BoardConfig) -> None:
    """Build a timetable once and print a summary."""
    from transit_board.services.snapshot_service import build_snapshot

    now = SystemClock(config.timezone).now()
    snapshot = build_snapshot(GTFSSource(gtfs_path), now, config)
    departures = sum(len(deps) for deps in snapshot.departures.values())

    print(f"\nTimetable for service day {snapshot.service_date}:")
    print(f"  stations: {len(snapshot.station_names):,}")
    print(f"  departures: {departures:,}")


async def run_server(config: BoardConfig) -> None:
    """Load the timetable, keep it refreshed and serve MCP over stdio."""
    # register tools
    import transit_board.tools.board_tools  # noqa: F401
    import transit_board.tools.station_tools  # noqa: F401
    from transit_board.services.snapshot_service import SnapshotStore, set_store

    store = SnapshotStore(config)
    set_store(store)
    await store.refresh()

    refresh_task = asyncio.create_task(store.run_refresh_loop())
    try:
        await mcp.run_stdio_async()
    finally:
        refresh_task.cancel()


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="transit-board",
        description="Transit departure board MCP server",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    # build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build the timetable once from a GTFS feed and print a summary",
    )
    build_parser.add_argument(
        "gtfs_path",
        type=Path,
        nargs="?",
        default=None,
        help="Path to GTFS directory or ZIP file (default: BOARD_GTFS_PATH)",
    )

    args = parser.parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = get_board_config()
    if args.command == "build":
        run_build(args.gtfs_path or config.gtfs_path, config)
    else:
        # Default: run MCP server
        asyncio.run(run_server(config))


if __name__ == "__main__":
    main()
