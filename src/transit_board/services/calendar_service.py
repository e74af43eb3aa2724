"""Calendar resolution: which service ids run on the effective service day."""

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from pydantic import ValidationError

from transit_board.models.gtfs import CalendarException, CalendarRow
from transit_board.services.service_time import effective_service_time

logger = logging.getLogger(__name__)

EXCEPTION_ADDED = 1
EXCEPTION_REMOVED = 2


def _non_empty(record: Mapping[str, str]) -> dict[str, str]:
    return {key: value for key, value in record.items() if value != ""}


def parse_calendar_rows(records: Iterable[Mapping[str, str]]) -> list[CalendarRow]:
    """Convert calendar.txt records into models, skipping invalid rows."""
    rows: list[CalendarRow] = []
    skipped = 0
    for record in records:
        try:
            rows.append(CalendarRow.model_validate(_non_empty(record)))
        except ValidationError as e:
            skipped += 1
            logger.debug(f"Skipping calendar row {dict(record)}: {e}")
    if skipped:
        logger.info(f"Skipped {skipped:,} invalid calendar rows")
    return rows


def parse_exception_rows(records: Iterable[Mapping[str, str]]) -> list[CalendarException]:
    """Convert calendar_dates.txt records into models, skipping invalid rows."""
    rows: list[CalendarException] = []
    skipped = 0
    for record in records:
        try:
            rows.append(CalendarException.model_validate(_non_empty(record)))
        except ValidationError as e:
            skipped += 1
            logger.debug(f"Skipping calendar_dates row {dict(record)}: {e}")
    if skipped:
        logger.info(f"Skipped {skipped:,} invalid calendar_dates rows")
    return rows


def active_service_ids(
    reference: datetime,
    calendar_rows: Iterable[CalendarRow] | None,
    exception_rows: Iterable[CalendarException] | None,
    cutoff_hour: int = 4,
) -> set[str]:
    """Get service IDs active on the effective service day of an instant.

    Implements the GTFS service day algorithm:
    1. Find services from calendar where the effective date is within
       [start_date, end_date] AND the weekday flag is 1
    2. Apply calendar_dates exceptions (exception_type=1 adds, 2 removes)

    Dates are compared as YYYYMMDD strings, which order the same as the
    dates they encode.

    Args:
        reference: Instant in the agency's local time zone.
        calendar_rows: Weekly calendar rows (None is an empty table).
        exception_rows: Dated exceptions (None is an empty table).
        cutoff_hour: Night cutoff; earlier instants use the previous day.

    Returns:
        Set of active service IDs.
    """
    service_time = effective_service_time(reference, cutoff_hour)
    date_str = service_time.date_str
    weekday_col = service_time.weekday_column

    if service_time.minute_offset:
        logger.debug(f"Before {cutoff_hour:02d}:00, using service day {date_str}")

    # Step 1: base services from calendar
    services: set[str] = set()
    for row in calendar_rows or ():
        if getattr(row, weekday_col) == 1 and row.start_date <= date_str <= row.end_date:
            services.add(row.service_id)

    # Step 2: exceptions always win
    for exception in exception_rows or ():
        if exception.date != date_str:
            continue
        if exception.exception_type == EXCEPTION_ADDED:
            services.add(exception.service_id)
        elif exception.exception_type == EXCEPTION_REMOVED:
            services.discard(exception.service_id)

    if not services:
        logger.warning(f"No active services for service day {date_str}")
    else:
        logger.info(f"{len(services):,} active services for service day {date_str}")

    return services
