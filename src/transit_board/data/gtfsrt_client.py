import httpx
from google.transit import gtfs_realtime_pb2

from transit_board.data.config import BoardConfig


def first_stop_delay(tu: gtfs_realtime_pb2.TripUpdate) -> int:
    """Delay of a trip taken from its first stop time update.

    Departure delay is preferred, then arrival delay; a zero or absent
    value falls through to the next candidate. The delay is assumed to hold
    for the rest of the trip, so later updates are not consulted.
    """
    stu = tu.stop_time_update[0]
    if stu.HasField("departure") and stu.departure.delay:
        return stu.departure.delay
    if stu.HasField("arrival") and stu.arrival.delay:
        return stu.arrival.delay
    return 0


def parse_delays(feed: gtfs_realtime_pb2.FeedMessage) -> dict[str, int]:
    """Parse a trip updates feed into trip_id -> delay in seconds."""
    delays: dict[str, int] = {}
    for entity in feed.entity:
        if not entity.HasField("trip_update"):
            continue
        tu = entity.trip_update
        if not tu.trip.trip_id or len(tu.stop_time_update) == 0:
            continue
        delays[tu.trip.trip_id] = first_stop_delay(tu)
    return delays


class GTFSRTClient:
    """Async HTTP client for fetching the GTFS-RT trip updates feed.

    Usage:
        async with GTFSRTClient(config) as client:
            delays = await client.fetch_delays()
    """

    def __init__(self, config: BoardConfig):
        """Initialize the client.

        Args:
            config: Board configuration with the feed URL and timeout.
        """
        self._config = config
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "GTFSRTClient":
        """Enter async context - create HTTP client."""
        self._client = httpx.AsyncClient(
            headers={"User-Agent": "transit-board"},
            timeout=self._config.fetch_timeout_seconds,
            verify=self._config.verify_tls,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch_feed(self) -> gtfs_realtime_pb2.FeedMessage:
        """Fetch and decode the realtime feed.

        Raises:
            RuntimeError: If client not initialized.
            httpx.HTTPError: If the HTTP request fails.
            google.protobuf.message.DecodeError: If the payload is not a feed.
        """
        if not self._client:
            raise RuntimeError("Client not initialized - use 'async with'")

        response = await self._client.get(self._config.realtime_url)
        response.raise_for_status()

        feed = gtfs_realtime_pb2.FeedMessage()
        feed.ParseFromString(response.content)
        return feed

    async def fetch_delays(self) -> dict[str, int]:
        """Fetch the feed and reduce it to trip_id -> delay in seconds."""
        return parse_delays(await self.fetch_feed())
