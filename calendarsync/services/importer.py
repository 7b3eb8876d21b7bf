"""Bulk import of events from CSV files.

Rows are mapped onto :class:`~calendarsync.schemas.EventCreate` and validated
one by one; invalid rows are reported and skipped, valid ones are stored.
Dates are not resolved here, only at read or export time.
"""
from __future__ import annotations

import csv
import io
import logging
from datetime import date
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from calendarsync.schemas import EventCreate, ImportResult
from calendarsync.services import events as events_service

logger = logging.getLogger(__name__)

COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "Title"),
    "description": ("description", "Description"),
    "date_type": ("dateType", "Date Type"),
    "start_date": ("startDate", "Start Date"),
    "end_date": ("endDate", "End Date"),
    "nth_occurrence": ("nthOccurrence", "Nth Occurrence"),
    "day_of_week": ("dayOfWeek", "Day of Week"),
    "month": ("month", "Month"),
    "base_year": ("baseYear", "Base Year"),
    "relative_period": ("relativePeriod", "Relative Period"),
    "relative_unit": ("relativeUnit", "Relative Unit"),
    "relative_direction": ("relativeDirection", "Relative Direction"),
    "relative_event_name": (
        "relativeEventName",
        "Relative Event Name",
        "relativeEventId",
        "Relative Event ID",
    ),
}


class RowError(ValueError):
    pass


def read_rows(content: str) -> list[dict[str, str]]:
    """Parse CSV text into trimmed dict rows, skipping blank lines."""
    reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")), skipinitialspace=True)
    rows = []
    for raw in reader:
        row = {
            (key or "").strip(): (value or "").strip()
            for key, value in raw.items()
            if isinstance(value, str) or value is None
        }
        if any(row.values()):
            rows.append(row)
    return rows


def row_to_payload(row: dict[str, str], *, today: Optional[date] = None) -> dict[str, Any]:
    """Map one CSV row onto the ``EventCreate`` field names, filling mode defaults."""
    today = today or date.today()
    payload: dict[str, Any] = {
        "title": _cell(row, "title"),
        "description": _cell(row, "description") or None,
        "date_type": _cell(row, "date_type").lower(),
    }

    if payload["date_type"] == "fixed":
        payload["start_date"] = _cell(row, "start_date") or None
        payload["end_date"] = _cell(row, "end_date") or None
    elif payload["date_type"] == "nth":
        payload["nth_occurrence"] = _int_cell(row, "nth_occurrence", 1)
        payload["day_of_week"] = _int_cell(row, "day_of_week", 1)
        payload["month"] = _int_cell(row, "month", 1)
        payload["base_year"] = _int_cell(row, "base_year", today.year)
    elif payload["date_type"] == "relative":
        payload["relative_period"] = _int_cell(row, "relative_period", 1)
        payload["relative_unit"] = _cell(row, "relative_unit") or "days"
        payload["relative_direction"] = _cell(row, "relative_direction") or "before"
        payload["relative_event_name"] = _cell(row, "relative_event_name")
    return payload


def parse_row(row: dict[str, str], *, today: Optional[date] = None) -> EventCreate:
    try:
        return EventCreate.model_validate(row_to_payload(row, today=today))
    except ValidationError as exc:
        messages = [_describe_error(error) for error in exc.errors()]
        raise RowError(", ".join(messages)) from exc


async def import_csv(
    session: AsyncSession, content: str, *, today: Optional[date] = None
) -> ImportResult:
    rows = read_rows(content)
    result = ImportResult(total=len(rows))

    for index, row in enumerate(rows, start=1):
        try:
            payload = parse_row(row, today=today)
        except RowError as exc:
            result.failed += 1
            result.errors.append(f"Row {index}: {exc}")
            continue
        await events_service.create_event(session, payload)
        result.successful += 1

    result.message = f"Import completed: {result.successful} successful, {result.failed} failed"
    logger.info(result.message)
    return result


def _cell(row: dict[str, str], field: str) -> str:
    for column in COLUMN_ALIASES[field]:
        if row.get(column):
            return row[column]
    return ""


def _int_cell(row: dict[str, str], field: str, default: int) -> int:
    value = _cell(row, field)
    if not value:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise RowError(f"{COLUMN_ALIASES[field][0]} must be a whole number, got {value!r}") from exc


def _describe_error(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error['msg']}" if location else error["msg"]
