"""Month calendar grid with per-day booking counts."""

import calendar
from collections import Counter
from collections.abc import Iterable
from datetime import date, timedelta

from partybook.models.package import CalendarDayAvailability
from partybook.models.reservation import ReservationRecord
from partybook.scheduling.dates import parse_iso_date

MIN_WEEKS = 5


def _grid_start(first: date) -> date:
    # Weeks start on Sunday: weekday() is Monday=0 … Sunday=6
    return first - timedelta(days=(first.weekday() + 1) % 7)


def build_month(
    year: int,
    month: int,
    reservations: Iterable[ReservationRecord],
    today: date | str,
) -> list[CalendarDayAvailability]:
    """Build the Sunday-first, week-aligned grid covering ``year``/``month``.

    The grid has 5 or 6 full weeks (35 or 42 cells); leading and trailing
    cells belong to the neighbouring months. A day is available only when
    it has no reservations at all.
    """
    today = parse_iso_date(today)
    first = date(year, month, 1)
    days_in_month = calendar.monthrange(year, month)[1]
    start = _grid_start(first)
    lead = (first - start).days
    weeks = max(MIN_WEEKS, -(-(lead + days_in_month) // 7))

    counts = Counter(r.date for r in reservations)

    cells: list[CalendarDayAvailability] = []
    for offset in range(weeks * 7):
        day = start + timedelta(days=offset)
        key = day.isoformat()
        count = counts.get(key, 0)
        cells.append(CalendarDayAvailability(
            date=key,
            is_current_month=day.month == month and day.year == year,
            is_past=day < today,
            is_today=day == today,
            reservation_count=count,
            is_available=count == 0,
        ))
    return cells


def overbooked_days(cells: Iterable[CalendarDayAvailability]) -> list[str]:
    """Dates holding more than one reservation."""
    return [c.date for c in cells if c.is_overbooked]


def available_days(
    cells: Iterable[CalendarDayAvailability], *, include_past: bool = False
) -> list[str]:
    """Bookable dates within the month itself."""
    return [
        c.date for c in cells
        if c.is_current_month and c.is_available and (include_past or not c.is_past)
    ]
