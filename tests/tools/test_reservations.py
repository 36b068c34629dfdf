"""Tests for the booking, listing, payment and cancellation tools."""

from datetime import date, timedelta

from fastmcp import Client

from tests.factories import SATURDAY, make_record


def text_of(result) -> str:
    return result.content[0].text


BOOKING = {
    "date": SATURDAY,
    "customer_name": "Ana López",
    "customer_phone": "555-0101",
    "child_name": "Sofía",
    "package": "Abra",
    "deposit": 1000,
}


class TestBookParty:
    async def test_books_at_catalog_price(self, tools_mcp, sources):
        mcp, _ = tools_mcp
        database, local = sources
        async with Client(mcp) as client:
            text = text_of(await client.call_tool("book_party", BOOKING))

        assert text.startswith("Booked:")
        assert "Total $3,000, deposit $1,000, $2,000 due" in text
        assert "Saved to: database, local." in text
        (record,) = database.records.values()
        assert record.total_amount == 3000
        assert record.id in local.records

    async def test_explicit_total_is_override(self, tools_mcp, sources):
        mcp, _ = tools_mcp
        async with Client(mcp) as client:
            text = text_of(await client.call_tool("book_party", {**BOOKING, "total": 2500}))
        assert "price_mismatch" not in text
        (record,) = sources[0].records.values()
        assert record.total_amount == 2500

    async def test_natural_language_date(self, tools_mcp, sources):
        mcp, _ = tools_mcp
        async with Client(mcp) as client:
            await client.call_tool("book_party", {**BOOKING, "date": "tomorrow"})
        (record,) = sources[0].records.values()
        assert record.date == (date.today() + timedelta(days=1)).isoformat()

    async def test_rejection_lists_every_problem(self, tools_mcp, sources):
        mcp, _ = tools_mcp
        async with Client(mcp) as client:
            result = await client.call_tool(
                "book_party",
                {**BOOKING, "date": "someday", "customer_phone": "", "package": "gold"},
            )
        text = text_of(result)
        assert text.startswith("Booking rejected:")
        assert "invalid_date" in text
        assert "customer_phone is required" in text
        assert "unknown_package_tier" in text
        assert sources[0].records == {}

    async def test_deposit_over_total(self, tools_mcp):
        mcp, _ = tools_mcp
        async with Client(mcp) as client:
            result = await client.call_tool("book_party", {**BOOKING, "deposit": 5000})
        assert "deposit_exceeds_total" in text_of(result)

    async def test_negative_deposit_rejected(self, tools_mcp, sources):
        mcp, _ = tools_mcp
        async with Client(mcp) as client:
            result = await client.call_tool("book_party", {**BOOKING, "deposit": -500})
        text = text_of(result)
        assert text.startswith("Booking rejected:")
        assert "negative_amount" in text
        assert sources[0].records == {}

    async def test_same_day_warning(self, tools_mcp, sources):
        mcp, _ = tools_mcp
        sources[0].records["event_old"] = make_record(
            id="event_old", customer_name="Luis", customer_phone="555-2222"
        )
        async with Client(mcp) as client:
            text = text_of(await client.call_tool("book_party", BOOKING))
        assert f"Warning: {SATURDAY} already had 1 party(ies): event_old" in text


class TestListReservations:
    async def test_empty(self, tools_mcp):
        mcp, _ = tools_mcp
        async with Client(mcp) as client:
            result = await client.call_tool("list_reservations", {})
        assert text_of(result) == "No reservations found."

    async def test_merged_and_filtered(self, tools_mcp, sources):
        mcp, _ = tools_mcp
        database, local = sources
        database.records["a"] = make_record(id="a")
        local.records["b"] = make_record(id="b", date="2026-07-04", customer_phone="555-3")
        async with Client(mcp) as client:
            everything = text_of(await client.call_tool("list_reservations", {}))
            june = text_of(await client.call_tool("list_reservations", {"month": "2026-06"}))

        assert "[id: a]" in everything
        assert "[id: b]" in everything
        assert "[id: a]" in june
        assert "[id: b]" not in june

    async def test_bad_month(self, tools_mcp):
        mcp, _ = tools_mcp
        async with Client(mcp) as client:
            result = await client.call_tool("list_reservations", {"month": "2026-13"})
        assert "Cannot parse month" in text_of(result)


class TestPaymentAndCancellation:
    async def test_mark_paid(self, tools_mcp, sources):
        mcp, _ = tools_mcp
        database, local = sources
        database.records["a"] = make_record(id="a")
        local.records["a"] = make_record(id="a")
        async with Client(mcp) as client:
            text = text_of(await client.call_tool("mark_reservation_paid", {"reservation_id": "a"}))

        assert text.startswith("Marked paid:")
        assert "PAID" in text
        assert database.records["a"].is_paid
        assert local.records["a"].is_paid

    async def test_mark_paid_unknown(self, tools_mcp):
        mcp, _ = tools_mcp
        async with Client(mcp) as client:
            result = await client.call_tool("mark_reservation_paid", {"reservation_id": "zzz"})
        assert text_of(result) == "Reservation 'zzz' not found."

    async def test_cancel(self, tools_mcp, sources):
        mcp, _ = tools_mcp
        database, local = sources
        database.records["a"] = make_record(id="a")
        async with Client(mcp) as client:
            text = text_of(await client.call_tool("cancel_reservation", {"reservation_id": "a"}))

        assert text.startswith(f"Cancelled Sofía's party on {SATURDAY}.")
        assert "Removed from: database." in text
        assert "Not removed from local: not_found" in text
        assert database.records == {}

    async def test_cancel_unknown(self, tools_mcp):
        mcp, _ = tools_mcp
        async with Client(mcp) as client:
            result = await client.call_tool("cancel_reservation", {"reservation_id": "zzz"})
        assert text_of(result) == "Reservation 'zzz' not found."
