from unittest.mock import patch

import pytest
from fastmcp import FastMCP

from partybook.service import ReservationService
from partybook.tools.calendar import register_calendar_tools
from partybook.tools.packages import register_package_tools
from partybook.tools.reservations import register_reservation_tools
from partybook.tools.sync import register_sync_tools
from tests.factories import FakeRepository


@pytest.fixture
def sources() -> tuple[FakeRepository, FakeRepository]:
    return FakeRepository("database"), FakeRepository("local")


@pytest.fixture
def tools_mcp(sources):
    """Return (mcp, service) with every tool module talking to fake sources.

    Patches ``get_service`` in each tool module that uses it.
    """
    service = ReservationService(list(sources), timeout=1.0)
    test_mcp = FastMCP("test")

    patchers = [
        patch(f"partybook.tools.{module}.get_service", return_value=service)
        for module in ("reservations", "calendar", "sync")
    ]
    for patcher in patchers:
        patcher.start()

    register_package_tools(test_mcp)
    register_reservation_tools(test_mcp)
    register_calendar_tools(test_mcp)
    register_sync_tools(test_mcp)

    yield test_mcp, service

    for patcher in patchers:
        patcher.stop()
