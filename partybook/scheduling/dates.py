"""Calendar helpers shared by pricing, validation, and the availability grid."""

import re
from datetime import date

_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}$")

# date.weekday(): Saturday = 5, Sunday = 6
WEEKEND_DAYS = frozenset({5, 6})


def parse_iso_date(value: str | date) -> date:
    """Parse a strict ``YYYY-MM-DD`` string.

    Raises:
        ValueError: If the string is empty, not ISO formatted, or not a real
            calendar date (e.g. ``2025-02-30``).
    """
    if isinstance(value, date):
        return value
    cleaned = value.strip()
    if not _ISO_DATE.match(cleaned):
        raise ValueError(f"Not an ISO date (YYYY-MM-DD): '{value}'")
    return date.fromisoformat(cleaned)


def is_weekend(day: date) -> bool:
    return day.weekday() in WEEKEND_DAYS
