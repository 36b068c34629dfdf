"""Turn the dates people type ("saturday", "Jun 14", "6/14") into ISO dates."""

import re
from datetime import date, timedelta

_DAY_NAMES: dict[str, int] = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
}

_MONTH_NAMES: dict[str, int] = {
    "jan": 1, "january": 1, "feb": 2, "february": 2, "mar": 3, "march": 3,
    "apr": 4, "april": 4, "may": 5, "jun": 6, "june": 6,
    "jul": 7, "july": 7, "aug": 8, "august": 8, "sep": 9, "september": 9,
    "oct": 10, "october": 10, "nov": 11, "november": 11, "dec": 12, "december": 12,
}


def _next_or_following_year(today: date, month: int, day: int) -> date:
    result = date(today.year, month, day)
    if result < today:
        result = date(today.year + 1, month, day)
    return result


def parse_date(text: str, today: date | None = None) -> str:
    """Parse a booking date into YYYY-MM-DD.

    Party dates are always today or later, so partial dates roll forward:
    a bare weekday is its next occurrence (today counts), and a month/day
    already behind us means next year.

    Supported formats:
    - ISO passthrough: "2026-06-14"
    - "today", "tomorrow"
    - Day name: "saturday", "this saturday", "next saturday" (one week later)
    - "Jun 14", "June 14"
    - "6/14" (month/day)

    Raises:
        ValueError: If the string cannot be parsed or names no real date.
    """
    today = today or date.today()
    cleaned = text.strip().lower()

    if re.match(r"\d{4}-\d{2}-\d{2}$", cleaned):
        return date.fromisoformat(cleaned).isoformat()
    if cleaned == "today":
        return today.isoformat()
    if cleaned == "tomorrow":
        return (today + timedelta(days=1)).isoformat()

    day_match = re.match(r"(this\s+|next\s+)?([a-z]+)$", cleaned)
    if day_match and day_match.group(2) in _DAY_NAMES:
        days_ahead = (_DAY_NAMES[day_match.group(2)] - today.weekday()) % 7
        if (day_match.group(1) or "").strip() == "next":
            days_ahead += 7
        return (today + timedelta(days=days_ahead)).isoformat()

    month_day = re.match(r"([a-z]+)\s+(\d{1,2})$", cleaned)
    if month_day and month_day.group(1) in _MONTH_NAMES:
        month = _MONTH_NAMES[month_day.group(1)]
        return _next_or_following_year(today, month, int(month_day.group(2))).isoformat()

    slash_date = re.match(r"(\d{1,2})/(\d{1,2})$", cleaned)
    if slash_date:
        month, day = int(slash_date.group(1)), int(slash_date.group(2))
        return _next_or_following_year(today, month, day).isoformat()

    raise ValueError(f"Cannot parse date: '{text}'")


def parse_month(text: str, today: date | None = None) -> tuple[int, int]:
    """Parse "YYYY-MM", a month name ("june"), or any date into (year, month)."""
    today = today or date.today()
    cleaned = text.strip().lower()
    ym = re.match(r"(\d{4})-(\d{1,2})$", cleaned)
    if ym:
        year, month = int(ym.group(1)), int(ym.group(2))
        if not 1 <= month <= 12:
            raise ValueError(f"Cannot parse month: '{text}'")
        return year, month
    if cleaned in _MONTH_NAMES:
        month = _MONTH_NAMES[cleaned]
        year = today.year if month >= today.month else today.year + 1
        return year, month
    parsed = date.fromisoformat(parse_date(text, today))
    return parsed.year, parsed.month
