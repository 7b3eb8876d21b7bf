"""Human-readable rendering of event dates."""
from __future__ import annotations

from datetime import date
from typing import Any

from calendarsync.services.resolver import LAST_OCCURRENCE, Resolution

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]
MONTH_NAMES = [
    "",
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]


def ordinal_suffix(n: int) -> str:
    if 10 <= n % 100 <= 20:
        return "th"
    return {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")


def format_date(value: date) -> str:
    """Formats a civil date as 'March 29, 2024'."""
    return f"{MONTH_NAMES[value.month]} {value.day}, {value.year}"


def describe_pattern(event: Any) -> str:
    """Describe an event's date specification without resolving it."""
    if event.date_type == "nth":
        if event.nth_occurrence == LAST_OCCURRENCE:
            occurrence = "Last"
        else:
            nth = event.nth_occurrence or 1
            occurrence = f"{nth}{ordinal_suffix(nth)}"
        day = _lookup(DAY_NAMES, event.day_of_week, 0)
        month = _lookup(MONTH_NAMES, event.month, 1)
        return f"{occurrence} {day} in {month}"

    if event.date_type == "relative":
        reference = event.relative_event_name or "reference event"
        return f"{event.relative_period} {event.relative_unit} {event.relative_direction} {reference}"

    return "Date not calculated"


def format_event_date(event: Any, resolution: Resolution) -> str:
    if isinstance(resolution, date):
        return format_date(resolution)
    return describe_pattern(event)


def _lookup(names: list[str], index: Any, default: int) -> str:
    if isinstance(index, int) and 0 <= index < len(names) and names[index]:
        return names[index]
    return names[default]
