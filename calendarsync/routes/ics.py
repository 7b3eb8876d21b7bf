from __future__ import annotations

import hashlib

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from calendarsync.config import Settings, get_settings
from calendarsync.db import get_session
from calendarsync.services import events as events_service
from calendarsync.services import ics as ics_service

router = APIRouter(tags=["ics"])


@router.get("/api/events/export/ics", response_class=Response)
async def export_ics(
    include_descriptions: bool = Query(default=True, alias="includeDescriptions"),
    set_reminders: bool = Query(default=False, alias="setReminders"),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> Response:
    events = await events_service.list_events(session)
    payload = ics_service.build_ics(
        events,
        settings,
        include_descriptions=include_descriptions,
        set_reminders=set_reminders,
    )

    response = Response(content=payload, media_type="text/calendar; charset=utf-8")
    response.headers["Content-Disposition"] = 'attachment; filename="events.ics"'
    response.headers["ETag"] = hashlib.sha256(payload).hexdigest()
    return response
