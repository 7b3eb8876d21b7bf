"""Date resolution for calendar events.

Every event carries exactly one of three date specifications:

* ``fixed``: an explicit civil date stored in ``start_date``;
* ``nth``: the Nth (or last) weekday of a month, e.g. "last Friday in March";
* ``relative``: an offset before or after another event, looked up by title.

:func:`resolve_date` turns a specification into a concrete :class:`datetime.date`
or an :class:`Unresolvable` value explaining why it cannot. Resolution is pure:
the snapshot of events is never mutated and nothing is cached between calls,
so editing a referenced event changes every dependent on the next call.
"""
from __future__ import annotations

import calendar
import enum
import logging
from dataclasses import dataclass
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta
from typing import Any, Iterable, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

DATE_TYPES = ("fixed", "nth", "relative")
RELATIVE_UNITS = ("days", "weeks", "months", "years")
RELATIVE_DIRECTIONS = ("before", "after")
LAST_OCCURRENCE = -1


class UnresolvableReason(str, enum.Enum):
    MISSING_FIELDS = "missing-fields"
    INVALID_DATE = "invalid-date"
    NO_SUCH_OCCURRENCE = "no-such-occurrence"
    INVALID_UNIT = "invalid-unit"
    INVALID_PERIOD = "invalid-period"
    REFERENCE_NOT_FOUND = "reference-not-found"
    CIRCULAR_REFERENCE = "circular-reference"
    UNKNOWN_DATE_TYPE = "unknown-date-type"


@dataclass(frozen=True)
class Unresolvable:
    """Expected failure outcome of :func:`resolve_date`."""

    reason: UnresolvableReason
    detail: str = ""


Resolution = Union[date, Unresolvable]


class DateResolutionError(ValueError):
    """Raised by the standalone calculators; carries the matching reason."""

    reason: UnresolvableReason = UnresolvableReason.INVALID_DATE


class InvalidCivilDateError(DateResolutionError):
    reason = UnresolvableReason.INVALID_DATE


class OccurrenceNotFoundError(DateResolutionError):
    reason = UnresolvableReason.NO_SUCH_OCCURRENCE


class InvalidUnitError(DateResolutionError):
    reason = UnresolvableReason.INVALID_UNIT


def parse_civil_date(value: Any) -> date:
    """Reduce ``value`` to a civil date without any timezone conversion.

    Strings are cut at the time separator and built from their literal
    year/month/day components, so ``"2024-12-25T23:00:00-05:00"`` stays the 25th.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidCivilDateError(f"Unsupported date value: {value!r}")

    prefix = value.strip().split("T", 1)[0].split(" ", 1)[0]
    parts = prefix.split("-")
    if len(parts) != 3:
        raise InvalidCivilDateError(f"Expected YYYY-MM-DD, got {value!r}")
    try:
        year, month, day = (int(part) for part in parts)
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidCivilDateError(f"Invalid calendar date {value!r}") from exc


def weekday_index(value: date) -> int:
    """Weekday with 0=Sunday .. 6=Saturday."""
    return value.isoweekday() % 7


def calculate_nth_date(nth_occurrence: int, day_of_week: int, month: int, year: int) -> date:
    """Return the ``nth_occurrence`` ``day_of_week`` of ``month``/``year``.

    ``nth_occurrence == -1`` selects the last such weekday. Occurrences that
    fall outside the month raise :class:`OccurrenceNotFoundError`.
    """
    if not 1 <= month <= 12:
        raise OccurrenceNotFoundError(f"Month {month} is out of range")
    if not 0 <= day_of_week <= 6:
        raise OccurrenceNotFoundError(f"Day of week {day_of_week} is out of range")
    if not MINYEAR <= year <= MAXYEAR:
        raise OccurrenceNotFoundError(f"Year {year} is out of range")

    if nth_occurrence == LAST_OCCURRENCE:
        return _last_weekday_of_month(day_of_week, month, year)
    if nth_occurrence < 1:
        raise OccurrenceNotFoundError(f"Occurrence {nth_occurrence} is not valid")

    first = date(year, month, 1)
    while weekday_index(first) != day_of_week:
        first += timedelta(days=1)

    try:
        candidate = first + timedelta(weeks=nth_occurrence - 1)
    except OverflowError as exc:
        raise OccurrenceNotFoundError(f"No occurrence {nth_occurrence} in {year}-{month:02d}") from exc
    if candidate.month != month:
        raise OccurrenceNotFoundError(f"No occurrence {nth_occurrence} in {year}-{month:02d}")
    return candidate


def _last_weekday_of_month(day_of_week: int, month: int, year: int) -> date:
    last = date(year, month, calendar.monthrange(year, month)[1])
    while weekday_index(last) != day_of_week:
        last -= timedelta(days=1)
    return last


def calculate_relative_date(base_date: date, period: int, unit: str, direction: str) -> date:
    """Shift ``base_date`` by ``period`` ``unit`` before or after it.

    Months and years use calendar arithmetic, clamping the day to the end of
    a shorter target month (Jan 31 + 1 month -> Feb 28/29).
    """
    amount = period * (-1 if direction == "before" else 1)

    if unit == "days":
        delta: Union[timedelta, relativedelta] = timedelta(days=amount)
    elif unit == "weeks":
        delta = timedelta(weeks=amount)
    elif unit == "months":
        delta = relativedelta(months=amount)
    elif unit == "years":
        delta = relativedelta(years=amount)
    else:
        raise InvalidUnitError(f"Invalid unit: {unit}")

    try:
        return base_date + delta
    except (OverflowError, ValueError) as exc:
        raise InvalidCivilDateError(f"{base_date} shifted by {amount} {unit} is out of range") from exc


def find_reference(name: str, events: Iterable[Any]) -> Optional[Any]:
    """First event, in snapshot order, whose title equals ``name`` exactly."""
    return next((candidate for candidate in events if candidate.title == name), None)


def resolve_date(event: Any, all_events: Sequence[Any], *, today: Optional[date] = None) -> Resolution:
    """Resolve ``event`` to a civil date against the ``all_events`` snapshot.

    Relative references are followed iteratively with an explicit set of
    visited event ids, so a chain that loops back onto itself is reported as
    :attr:`UnresolvableReason.CIRCULAR_REFERENCE` instead of recursing.
    """
    today = today or date.today()

    chain = []
    visited = {_identity(event)}
    current = event
    while current.date_type == "relative":
        missing = _missing_relative_fields(current)
        if missing:
            return Unresolvable(
                UnresolvableReason.MISSING_FIELDS,
                f"{current.title!r} is missing {', '.join(missing)}",
            )
        if current.relative_period <= 0:
            return Unresolvable(
                UnresolvableReason.INVALID_PERIOD,
                f"{current.title!r} has non-positive relative_period {current.relative_period}",
            )

        reference = find_reference(current.relative_event_name, all_events)
        if reference is None:
            return Unresolvable(
                UnresolvableReason.REFERENCE_NOT_FOUND,
                f"No event titled {current.relative_event_name!r}",
            )
        if _identity(reference) in visited:
            return Unresolvable(
                UnresolvableReason.CIRCULAR_REFERENCE,
                f"{current.title!r} refers back to {reference.title!r}",
            )

        visited.add(_identity(reference))
        chain.append(current)
        current = reference

    resolved = _resolve_anchor(current, today)
    if isinstance(resolved, Unresolvable):
        return resolved

    for link in reversed(chain):
        try:
            resolved = calculate_relative_date(
                resolved, link.relative_period, link.relative_unit, link.relative_direction
            )
        except DateResolutionError as exc:
            return Unresolvable(exc.reason, str(exc))
    return resolved


def resolve_all(events: Iterable[Any], *, today: Optional[date] = None) -> list[tuple[Any, Resolution]]:
    """Resolve every event of a snapshot, preserving its stored order."""
    snapshot = list(events)
    today = today or date.today()

    results = []
    for event in snapshot:
        resolution = resolve_date(event, snapshot, today=today)
        if isinstance(resolution, Unresolvable):
            logger.debug("Event %s is unresolvable: %s (%s)", event.id, resolution.reason.value, resolution.detail)
        results.append((event, resolution))
    return results


def _resolve_anchor(event: Any, today: date) -> Resolution:
    if event.date_type == "fixed":
        if event.start_date is None or event.start_date == "":
            return Unresolvable(UnresolvableReason.MISSING_FIELDS, f"{event.title!r} is missing start_date")
        try:
            return parse_civil_date(event.start_date)
        except DateResolutionError as exc:
            return Unresolvable(exc.reason, str(exc))

    if event.date_type == "nth":
        missing = [
            field
            for field in ("nth_occurrence", "day_of_week", "month")
            if getattr(event, field) is None
        ]
        if missing:
            return Unresolvable(
                UnresolvableReason.MISSING_FIELDS,
                f"{event.title!r} is missing {', '.join(missing)}",
            )
        try:
            return calculate_nth_date(
                event.nth_occurrence,
                event.day_of_week,
                event.month,
                event.base_year or today.year,
            )
        except DateResolutionError as exc:
            return Unresolvable(exc.reason, str(exc))

    return Unresolvable(UnresolvableReason.UNKNOWN_DATE_TYPE, f"Unknown date type {event.date_type!r}")


def _missing_relative_fields(event: Any) -> list[str]:
    missing = [
        field
        for field in ("relative_event_name", "relative_unit", "relative_direction")
        if not getattr(event, field)
    ]
    if event.relative_period is None:
        missing.insert(0, "relative_period")
    return missing


def _identity(event: Any) -> Any:
    return event.id if event.id is not None else id(event)
