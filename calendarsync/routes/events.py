from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from calendarsync import models, schemas
from calendarsync.config import Settings, get_settings
from calendarsync.db import get_session
from calendarsync.services import events as events_service
from calendarsync.services import importer as importer_service
from calendarsync.services.formatting import format_event_date
from calendarsync.services.resolver import Resolution, Unresolvable, resolve_all, resolve_date

router = APIRouter(prefix="/api/events", tags=["events"])

CSV_CONTENT_TYPES = {"text/csv", "application/csv", "application/vnd.ms-excel"}


def to_response(event: models.Event, resolution: Resolution) -> schemas.EventResponse:
    unresolved = resolution if isinstance(resolution, Unresolvable) else None
    return schemas.EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        date_type=event.date_type,
        start_date=event.start_date,
        end_date=event.end_date,
        nth_occurrence=event.nth_occurrence,
        day_of_week=event.day_of_week,
        month=event.month,
        base_year=event.base_year,
        relative_period=event.relative_period,
        relative_unit=event.relative_unit,
        relative_direction=event.relative_direction,
        relative_event_name=event.relative_event_name,
        created_at=event.created_at,
        resolved_date=None if unresolved else resolution,
        unresolved_reason=unresolved.reason.value if unresolved else None,
        display_date=format_event_date(event, resolution),
    )


async def _respond_with_snapshot(session: AsyncSession, event: models.Event) -> schemas.EventResponse:
    snapshot = await events_service.list_events(session)
    return to_response(event, resolve_date(event, snapshot))


@router.get("", response_model=list[schemas.EventResponse])
async def list_events(session: AsyncSession = Depends(get_session)) -> list[schemas.EventResponse]:
    events = await events_service.list_events(session)
    return [to_response(event, resolution) for event, resolution in resolve_all(events)]


@router.delete("", response_model=schemas.ClearEventsResponse)
async def clear_events(session: AsyncSession = Depends(get_session)) -> schemas.ClearEventsResponse:
    deleted = await events_service.clear_events(session)
    return schemas.ClearEventsResponse(
        message=f"Successfully deleted {deleted} events",
        deleted_count=deleted,
    )


@router.post("", response_model=schemas.EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: schemas.EventCreate,
    session: AsyncSession = Depends(get_session),
) -> schemas.EventResponse:
    event = await events_service.create_event(session, payload)
    return await _respond_with_snapshot(session, event)


@router.post("/update-year", response_model=schemas.YearUpdateResponse)
async def update_year(
    payload: schemas.YearUpdateRequest,
    session: AsyncSession = Depends(get_session),
) -> schemas.YearUpdateResponse:
    updated = await events_service.update_base_year(session, payload.new_year)
    return schemas.YearUpdateResponse(
        message=f"Updated {updated} nth date events to year {payload.new_year}",
        updated_count=updated,
        year=payload.new_year,
    )


@router.post("/import", response_model=schemas.ImportResult)
async def import_events(
    file: Optional[UploadFile] = File(default=None),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> schemas.ImportResult:
    if file is None or not file.filename:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No file uploaded")
    if file.content_type not in CSV_CONTENT_TYPES and not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only CSV files are allowed")

    raw = await file.read(settings.import_max_bytes + 1)
    if len(raw) > settings.import_max_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds maximum allowed size ({settings.import_max_bytes} bytes)",
        )
    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="CSV file must be UTF-8 encoded"
        ) from exc

    return await importer_service.import_csv(session, content)


@router.get("/{event_id}", response_model=schemas.EventResponse)
async def get_event(
    event_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> schemas.EventResponse:
    event = await events_service.get_event(session, event_id)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return await _respond_with_snapshot(session, event)


@router.patch("/{event_id}", response_model=schemas.EventResponse)
async def update_event(
    event_id: UUID,
    payload: schemas.EventUpdate,
    session: AsyncSession = Depends(get_session),
) -> schemas.EventResponse:
    event = await events_service.update_event(session, event_id, payload)
    if event is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return await _respond_with_snapshot(session, event)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_event(
    event_id: UUID,
    session: AsyncSession = Depends(get_session),
) -> Response:
    deleted = await events_service.delete_event(session, event_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
