import logging

from fastmcp import FastMCP

from partybook.server import get_service
from partybook.tools.formatting import format_report

logger = logging.getLogger(__name__)


def register_sync_tools(mcp: FastMCP) -> None:
    """Register cross-source reconciliation tools on the MCP server."""

    @mcp.tool
    async def reconciliation_report() -> str:
        """Compare every reservation source without changing anything.

        Returns:
            Unavailable sources, double bookings, copies that disagree,
            and reservations missing from some sources.
        """
        result = await get_service().load()
        return format_report(result)

    @mcp.tool
    async def sync_sources() -> str:
        """Copy reservations that are missing from a source into it, so
        every source holds the same bookings. Conflicts are reported but
        not resolved.

        Returns:
            The reconciliation report followed by the copy results.
        """
        service = get_service()
        result = await service.load()
        outcomes = await service.propagate(result)
        lines = [format_report(result)]
        if not outcomes:
            lines.append("All sources already in sync.")
        copied = sum(len(o.written) for o in outcomes)
        failed = [(o.record, s, e) for o in outcomes for s, e in o.failed.items()]
        if outcomes:
            lines.append(f"Copied {copied} record(s).")
        for record, source, error in failed:
            lines.append(f"  Could not copy {record.id} to {source}: {error}")
        return "\n".join(lines)
