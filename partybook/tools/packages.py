import logging

from fastmcp import FastMCP

from partybook.scheduling.dates import is_weekend, parse_iso_date
from partybook.scheduling.pricing import CATALOG, UnknownPackageTier, parse_tier, price
from partybook.tools.date_utils import parse_date
from partybook.tools.formatting import money

logger = logging.getLogger(__name__)


def register_package_tools(mcp: FastMCP) -> None:
    """Register package catalog and pricing tools on the MCP server."""

    @mcp.tool
    async def list_packages() -> str:
        """List the party packages with weekday and weekend prices.

        Returns:
            One block per package: name, prices, description and features.
        """
        blocks = []
        for definition in CATALOG.values():
            features = "\n".join(f"  - {f}" for f in definition.features)
            blocks.append(
                f"{definition.tier}: weekday {money(definition.weekday_price)}, "
                f"weekend {money(definition.weekend_price)}\n"
                f"  {definition.description}\n{features}"
            )
        return "\n\n".join(blocks)

    @mcp.tool
    async def quote_price(date: str, package: str) -> str:
        """Quote the price of a package on a given date. Saturdays and
        Sundays use the weekend price.

        Args:
            date: Party date, e.g. "2026-06-14", "saturday", "Jun 14", "6/14".
            package: Package name (Abra, Kadabra, Abrakadabra) or
                basic / mid / premium.

        Returns:
            The price and whether the weekend rate applies.
        """
        try:
            iso = parse_date(date)
            tier = parse_tier(package)
        except (ValueError, UnknownPackageTier) as exc:
            return f"Cannot quote: {exc}"
        rate = "weekend" if is_weekend(parse_iso_date(iso)) else "weekday"
        return f"{tier} on {iso}: {money(price(iso, tier))} ({rate} rate)."
