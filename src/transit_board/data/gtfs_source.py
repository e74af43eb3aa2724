"""Row source for a static GTFS feed stored as a directory or ZIP file."""

import csv
import io
import logging
import zipfile
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

ROUTES_FILE = "routes.txt"
STOPS_FILE = "stops.txt"
TRIPS_FILE = "trips.txt"
CALENDAR_FILE = "calendar.txt"
CALENDAR_DATES_FILE = "calendar_dates.txt"
STOP_TIMES_FILE = "stop_times.txt"


def normalize_header(name: str) -> str:
    """Normalize a CSV header field name (whitespace, quotes, BOM)."""
    return name.strip().strip('"').lstrip("\ufeff").strip()


def build_header_index(header: list[str], columns: list[str]) -> dict[str, int]:
    """Map each wanted column name to its position in the header row.

    The first occurrence of a name wins. Columns absent from the header are
    left out of the result, so callers decide whether that is fatal.
    """
    wanted = set(columns)
    header_index: dict[str, int] = {}
    for idx, name in enumerate(header):
        cleaned = normalize_header(name)
        if cleaned in wanted and cleaned not in header_index:
            header_index[cleaned] = idx
    return header_index


class GTFSSource:
    """Reads GTFS tables from a directory or ZIP file.

    Rows are streamed straight from disk, never materialized as a whole.
    A missing table is treated as an empty one.

    Usage:
        source = GTFSSource(Path("data/gtfs.zip"))
        for record in source.iter_records("routes.txt"):
            ...
    """

    def __init__(self, path: Path):
        """Initialize the source.

        Args:
            path: Path to a GTFS directory or ZIP file.

        Raises:
            FileNotFoundError: If the path doesn't exist.
        """
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"GTFS path not found: {self.path}")

    @property
    def is_zip(self) -> bool:
        return self.path.is_file() and self.path.suffix == ".zip"

    def iter_rows(self, filename: str) -> Iterator[list[str]]:
        """Stream raw CSV rows of a table, header row first.

        Args:
            filename: GTFS file name, e.g. "stop_times.txt".

        Yields:
            Each row as a list of strings. Nothing if the file is missing.
        """
        if self.is_zip:
            with zipfile.ZipFile(self.path, "r") as zf:
                if filename not in zf.namelist():
                    logger.warning(f"Optional file {filename} not found in ZIP")
                    return
                with zf.open(filename) as f:
                    text_file = io.TextIOWrapper(
                        f, encoding="utf-8-sig", errors="replace", newline=""
                    )
                    yield from csv.reader(text_file)
        else:
            csv_path = self.path / filename
            if not csv_path.exists():
                logger.warning(f"Optional file {filename} not found")
                return
            with open(csv_path, encoding="utf-8-sig", errors="replace", newline="") as f:
                yield from csv.reader(f)

    def iter_records(self, filename: str) -> Iterator[dict[str, str]]:
        """Stream a table as dicts keyed by header name.

        Values are whitespace-stripped; short rows get "" for missing cells.
        Blank lines are skipped.
        """
        rows = self.iter_rows(filename)
        header = next(rows, None)
        if header is None:
            return
        names = [normalize_header(name) for name in header]
        for row in rows:
            if not row or all(not cell.strip() for cell in row):
                continue
            yield {
                name: (row[idx].strip() if idx < len(row) else "")
                for idx, name in enumerate(names)
            }

    def read_records(self, filename: str) -> list[dict[str, str]]:
        """Load a small table fully into memory."""
        records = list(self.iter_records(filename))
        logger.info(f"Loaded {len(records):,} rows from {filename}")
        return records
