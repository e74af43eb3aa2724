"""Tests for calendar resolution."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from transit_board.models.gtfs import CalendarException, CalendarRow
from transit_board.services.calendar_service import (
    active_service_ids,
    parse_calendar_rows,
    parse_exception_rows,
)

ZAGREB = ZoneInfo("Europe/Zagreb")

# 2024-01-15 is a Monday
MONDAY_NOON = datetime(2024, 1, 15, 12, 0, tzinfo=ZAGREB)


def _calendar(service_id: str, days: str = "1111100", start="20240101", end="20241231"):
    names = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
    flags = {name: int(flag) for name, flag in zip(names, days)}
    return CalendarRow(service_id=service_id, start_date=start, end_date=end, **flags)


class TestActiveServiceIds:
    def test_weekday_service_active_on_monday(self) -> None:
        """A weekday calendar should be active on a Monday."""
        rows = [_calendar("WD")]
        assert "WD" in active_service_ids(MONDAY_NOON, rows, [])

    def test_weekend_service_inactive_on_monday(self) -> None:
        """A weekend-only calendar should not run on a Monday."""
        rows = [_calendar("WD"), _calendar("WE", days="0000011")]
        assert active_service_ids(MONDAY_NOON, rows, []) == {"WD"}

    def test_date_range_inclusive(self) -> None:
        """Start and end dates should both be inside the service range."""
        rows = [
            _calendar("STARTS_TODAY", start="20240115", end="20240120"),
            _calendar("ENDS_TODAY", start="20240101", end="20240115"),
            _calendar("ENDED", start="20240101", end="20240114"),
            _calendar("FUTURE", start="20240116", end="20241231"),
        ]
        assert active_service_ids(MONDAY_NOON, rows, []) == {"STARTS_TODAY", "ENDS_TODAY"}

    def test_removed_exception_wins_over_calendar(self) -> None:
        """A removal exception should cancel a regular service."""
        rows = [_calendar("WD")]
        exceptions = [CalendarException(service_id="WD", date="20240115", exception_type=2)]
        assert active_service_ids(MONDAY_NOON, rows, exceptions) == set()

    def test_added_exception_without_weekly_flags(self) -> None:
        """An added exception should enable a service with no weekly days."""
        rows = [_calendar("HOLIDAY", days="0000000")]
        exceptions = [CalendarException(service_id="HOLIDAY", date="20240115", exception_type=1)]
        assert active_service_ids(MONDAY_NOON, rows, exceptions) == {"HOLIDAY"}

    def test_added_exception_absent_from_calendar(self) -> None:
        """An added exception should work for a service missing from calendar.txt."""
        exceptions = [CalendarException(service_id="EXTRA", date="20240115", exception_type=1)]
        assert active_service_ids(MONDAY_NOON, [], exceptions) == {"EXTRA"}

    def test_exception_for_other_date_ignored(self) -> None:
        """Exceptions for other dates should have no effect."""
        rows = [_calendar("WD")]
        exceptions = [
            CalendarException(service_id="WD", date="20240116", exception_type=2),
            CalendarException(service_id="X", date="20240114", exception_type=1),
        ]
        assert active_service_ids(MONDAY_NOON, rows, exceptions) == {"WD"}

    def test_unknown_exception_type_ignored(self) -> None:
        """Exception types other than 1 and 2 should be ignored."""
        rows = [_calendar("WD")]
        exceptions = [CalendarException(service_id="WD", date="20240115", exception_type=3)]
        assert active_service_ids(MONDAY_NOON, rows, exceptions) == {"WD"}

    def test_night_cutoff_uses_previous_day(self) -> None:
        """At 00:30 Tuesday the Monday calendar still applies."""
        tuesday_night = datetime(2024, 1, 16, 0, 30, tzinfo=ZAGREB)
        rows = [_calendar("MON_ONLY", days="1000000"), _calendar("TUE_ONLY", days="0100000")]
        exceptions = [
            CalendarException(service_id="MON_EXTRA", date="20240115", exception_type=1),
            CalendarException(service_id="TUE_EXTRA", date="20240116", exception_type=1),
        ]
        result = active_service_ids(tuesday_night, rows, exceptions)
        assert result == {"MON_ONLY", "MON_EXTRA"}

    def test_at_cutoff_uses_same_day(self) -> None:
        """From the cutoff hour on the calendar day itself applies."""
        tuesday_morning = datetime(2024, 1, 16, 4, 0, tzinfo=ZAGREB)
        rows = [_calendar("MON_ONLY", days="1000000"), _calendar("TUE_ONLY", days="0100000")]
        assert active_service_ids(tuesday_morning, rows, []) == {"TUE_ONLY"}

    def test_missing_tables_are_empty(self, caplog) -> None:
        """Missing calendar tables should give no services and a warning."""
        with caplog.at_level(logging.WARNING):
            assert active_service_ids(MONDAY_NOON, None, None) == set()
        assert "No active services" in caplog.text

    def test_idempotent(self) -> None:
        """Resolving twice should give the same set."""
        rows = [_calendar("WD"), _calendar("WE", days="0000011")]
        exceptions = [CalendarException(service_id="WE", date="20240115", exception_type=1)]
        first = active_service_ids(MONDAY_NOON, rows, exceptions)
        second = active_service_ids(MONDAY_NOON, rows, exceptions)
        assert first == second == {"WD", "WE"}


class TestParseRows:
    def test_parse_calendar_rows(self) -> None:
        """Valid calendar rows should parse and invalid ones be skipped."""
        records = [
            {
                "service_id": "WD",
                "monday": "1",
                "tuesday": "1",
                "wednesday": "1",
                "thursday": "1",
                "friday": "1",
                "saturday": "0",
                "sunday": "0",
                "start_date": "20240101",
                "end_date": "20241231",
            },
            {"service_id": "BROKEN", "monday": "x", "start_date": "20240101", "end_date": "20241231"},
            {"service_id": "NO_DATES", "monday": "1"},
        ]
        rows = parse_calendar_rows(records)
        assert [row.service_id for row in rows] == ["WD"]
        assert rows[0].monday == 1
        assert rows[0].saturday == 0

    def test_parse_calendar_rows_missing_flags_default_off(self) -> None:
        """Blank weekday flags should count as not running."""
        rows = parse_calendar_rows(
            [{"service_id": "S", "monday": "", "start_date": "20240101", "end_date": "20241231"}]
        )
        assert rows[0].monday == 0

    def test_parse_exception_rows(self) -> None:
        """Exception rows without a type should be skipped."""
        records = [
            {"service_id": "WD", "date": "20240115", "exception_type": "2"},
            {"service_id": "WD", "date": "20240116", "exception_type": ""},
        ]
        rows = parse_exception_rows(records)
        assert len(rows) == 1
        assert rows[0].exception_type == 2
