import calendar
import logging
from datetime import date

from fastmcp import FastMCP

from partybook.scheduling.availability import available_days, overbooked_days
from partybook.server import get_service
from partybook.tools.date_utils import parse_month

logger = logging.getLogger(__name__)


def register_calendar_tools(mcp: FastMCP) -> None:
    """Register the availability calendar tool on the MCP server."""

    @mcp.tool
    async def check_availability(month: str | None = None) -> str:
        """Show which days of a month are free for a party. One party per
        day is the rule; days with more than one are flagged.

        Args:
            month: "2026-06", "june", or any date in the month.
                Defaults to the current month.

        Returns:
            Booked days, free upcoming days, and any overbooked days.
        """
        today = date.today()
        try:
            year, month_num = parse_month(month, today) if month else (today.year, today.month)
        except ValueError as exc:
            return str(exc)

        service = get_service()
        cells, result = await service.month(year, month_num, today)

        booked = [
            f"{c.date} ({c.reservation_count})"
            for c in cells if c.is_current_month and not c.is_available
        ]
        free = available_days(cells)
        lines = [f"{calendar.month_name[month_num]} {year}:"]
        lines.append(f"Booked: {', '.join(booked) if booked else 'none'}")
        lines.append(f"Free upcoming days: {len(free)}")
        if free:
            lines.append("  " + ", ".join(free))
        overbooked = overbooked_days(c for c in cells if c.is_current_month)
        if overbooked:
            lines.append(f"Overbooked: {', '.join(overbooked)}")
        if result.unavailable:
            names = ", ".join(u.source for u in result.unavailable)
            lines.append(f"(Calendar may be incomplete. Unavailable sources: {names})")
        return "\n".join(lines)
