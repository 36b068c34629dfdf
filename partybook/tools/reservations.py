"""MCP tools for booking, listing, paying and cancelling parties."""

import logging

from fastmcp import FastMCP

from partybook.models.reservation import ReservationDraft
from partybook.scheduling.pricing import UnknownPackageTier, parse_tier, price
from partybook.server import get_service
from partybook.service import WriteOutcome
from partybook.tools.date_utils import parse_date, parse_month
from partybook.tools.formatting import format_issue, format_reservation

logger = logging.getLogger(__name__)


def _describe_writes(
    outcome: WriteOutcome, done: str = "Saved to", not_done: str = "Not saved to"
) -> str:
    parts = []
    if outcome.written:
        parts.append(f"{done}: {', '.join(outcome.written)}.")
    for source, error in outcome.failed.items():
        parts.append(f"{not_done} {source}: {error}")
    return " ".join(parts)


def register_reservation_tools(mcp: FastMCP) -> None:
    """Register reservation management tools on the MCP server."""

    @mcp.tool
    async def book_party(
        date: str,
        customer_name: str,
        customer_phone: str,
        child_name: str,
        package: str,
        time: str = "15:00",
        deposit: int = 0,
        total: int | None = None,
        notes: str | None = None,
    ) -> str:
        """Book a party. The total defaults to the catalog price for the
        date; pass ``total`` to charge a different amount (it is recorded
        as a manual price override).

        Args:
            date: Party date, e.g. "2026-06-14", "saturday", "Jun 14".
            customer_name: Name of the parent or contact.
            customer_phone: Contact phone number.
            child_name: Name of the birthday child.
            package: Abra, Kadabra or Abrakadabra (or basic / mid / premium).
            time: Start time, HH:MM.
            deposit: Amount already paid.
            total: Agreed total; omit to use the catalog price.
            notes: Free-text notes.

        Returns:
            The booked reservation, or every problem found with the request.
        """
        service = get_service()
        try:
            iso = parse_date(date)
        except ValueError:
            iso = date  # let the validator report it

        override = total is not None
        if total is None:
            try:
                total = price(iso, parse_tier(package))
            except (ValueError, UnknownPackageTier):
                total = 0

        draft = ReservationDraft(
            date=iso,
            time=time,
            customer_name=customer_name,
            customer_phone=customer_phone,
            child_name=child_name,
            package_tier=package,
            total_amount=total,
            deposit_amount=deposit,
            price_override=override,
            notes=notes,
        )
        outcome = await service.book(draft)
        if outcome.record is None:
            return "Booking rejected:\n" + "\n".join(format_issue(i) for i in outcome.issues)

        lines = [f"Booked: {format_reservation(outcome.record)}"]
        lines.extend(format_issue(i) for i in outcome.issues)
        if outcome.same_day:
            lines.append(
                f"Warning: {outcome.record.date} already had "
                f"{len(outcome.same_day)} party(ies): {', '.join(outcome.same_day)}"
            )
        lines.append(_describe_writes(outcome))
        return "\n".join(lines)

    @mcp.tool
    async def list_reservations(month: str | None = None) -> str:
        """List booked parties from all sources, merged.

        Args:
            month: Optional month filter, e.g. "2026-06" or "june".

        Returns:
            Reservations in date order, one per line.
        """
        service = get_service()
        result = await service.load()
        reservations = result.reservations
        if month:
            try:
                year, month_num = parse_month(month)
            except ValueError as exc:
                return str(exc)
            prefix = f"{year:04d}-{month_num:02d}-"
            reservations = [r for r in reservations if r.date.startswith(prefix)]

        if not reservations:
            return "No reservations found."
        lines = [format_reservation(r) for r in reservations]
        if result.unavailable:
            names = ", ".join(u.source for u in result.unavailable)
            lines.append(f"(Unavailable sources: {names})")
        return "\n".join(lines)

    @mcp.tool
    async def mark_reservation_paid(reservation_id: str) -> str:
        """Record that a reservation has been paid in full.

        Args:
            reservation_id: The reservation id shown by list_reservations.

        Returns:
            Confirmation with the updated balance.
        """
        service = get_service()
        outcome = await service.mark_paid(reservation_id)
        if outcome.record is None:
            return f"Reservation '{reservation_id}' not found."
        return f"Marked paid: {format_reservation(outcome.record)}\n{_describe_writes(outcome)}"

    @mcp.tool
    async def cancel_reservation(reservation_id: str) -> str:
        """Cancel a reservation and remove it from every source.

        Args:
            reservation_id: The reservation id shown by list_reservations.

        Returns:
            Which sources the reservation was removed from.
        """
        service = get_service()
        record = await service.find(reservation_id)
        if record is None:
            return f"Reservation '{reservation_id}' not found."
        outcome = await service.cancel(record)
        return (
            f"Cancelled {record.child_name}'s party on {record.date}. "
            f"{_describe_writes(outcome, 'Removed from', 'Not removed from')}"
        )
