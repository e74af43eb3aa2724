"""Tests for the MCP server and health tool."""

import pytest

from transit_board import __version__
from transit_board.server import health
from transit_board.services import snapshot_service


@pytest.fixture(autouse=True)
def reset_store():
    snapshot_service.reset_store()
    yield
    snapshot_service.reset_store()


def test_health_returns_ok_status():
    """Health check should return status ok."""
    response = health()
    assert response.status == "ok"


def test_health_returns_version():
    """Health check should return the current version."""
    response = health()
    assert response.version == __version__


def test_health_returns_timestamp():
    """Health check should return a valid ISO timestamp."""
    response = health()
    assert response.timestamp is not None
    # Should be parseable as ISO format
    assert "T" in response.timestamp


def test_health_reports_no_timetable_before_first_build():
    """Health check should report no service date before the first build."""
    response = health()
    assert response.service_date == ""
