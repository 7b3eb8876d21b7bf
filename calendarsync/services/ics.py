from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional

from icalendar import Alarm, Calendar, Event

from calendarsync import models
from calendarsync.config import Settings
from calendarsync.services.resolver import Unresolvable, parse_civil_date, resolve_all

logger = logging.getLogger(__name__)

REMINDER_OFFSET = timedelta(minutes=-15)


def build_ics(
    events: Iterable[models.Event],
    settings: Settings,
    *,
    include_descriptions: bool = True,
    set_reminders: bool = False,
    today: Optional[date] = None,
) -> bytes:
    """Render all resolvable events as an iCalendar feed of all-day entries.

    Events are emitted in snapshot order; unresolvable ones are skipped.
    """
    feed = Calendar()
    feed.add("prodid", settings.ics_product_id)
    feed.add("version", "2.0")
    feed.add("calscale", "GREGORIAN")
    feed.add("method", "PUBLISH")

    for event, resolution in resolve_all(events, today=today):
        if isinstance(resolution, Unresolvable):
            logger.info(
                "Skipping event %s (%s) in export: %s",
                event.id,
                event.title,
                resolution.reason.value,
            )
            continue
        feed.add_component(
            _event_component(
                event,
                resolution,
                settings,
                include_descriptions=include_descriptions,
                set_reminders=set_reminders,
            )
        )

    return feed.to_ical()


def exclusive_end_date(event: models.Event, start: date) -> date:
    """All-day DTEND is the day after the last day of the event."""
    if event.date_type == "fixed" and event.end_date is not None:
        last_day = parse_civil_date(event.end_date)
        if last_day >= start:
            return last_day + timedelta(days=1)
    return start + timedelta(days=1)


def _event_component(
    event: models.Event,
    start: date,
    settings: Settings,
    *,
    include_descriptions: bool,
    set_reminders: bool,
) -> Event:
    component = Event()
    created = _as_utc(event.created_at)
    component.add("uid", settings.build_event_uid(event.id))
    component.add("dtstamp", created)
    component.add("created", created)
    component.add("dtstart", start)
    component.add("dtend", exclusive_end_date(event, start))
    component.add("summary", event.title)
    if include_descriptions and event.description:
        component.add("description", event.description)

    if set_reminders:
        alarm = Alarm()
        alarm.add("action", "DISPLAY")
        alarm.add("trigger", REMINDER_OFFSET)
        alarm.add("description", "Reminder")
        component.add_component(alarm)
    return component


def _as_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
