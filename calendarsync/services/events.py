from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from calendarsync import models
from calendarsync.schemas import EventCreate, EventUpdate

logger = logging.getLogger(__name__)


async def create_event(session: AsyncSession, payload: EventCreate) -> models.Event:
    event = models.Event(**payload.model_dump())
    session.add(event)
    await session.commit()
    await session.refresh(event)
    return event


async def get_event(session: AsyncSession, event_id: UUID) -> Optional[models.Event]:
    result = await session.execute(select(models.Event).where(models.Event.id == event_id))
    return result.scalar_one_or_none()


async def list_events(session: AsyncSession) -> list[models.Event]:
    """All events in stored (creation) order."""
    result = await session.execute(select(models.Event).order_by(models.Event.created_at))
    return list(result.scalars())


async def update_event(
    session: AsyncSession, event_id: UUID, payload: EventUpdate
) -> Optional[models.Event]:
    event = await get_event(session, event_id)
    if event is None:
        return None

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(event, field, value)
    await session.commit()
    await session.refresh(event)
    return event


async def delete_event(session: AsyncSession, event_id: UUID) -> bool:
    event = await get_event(session, event_id)
    if event is None:
        return False
    await session.delete(event)
    await session.commit()
    return True


async def clear_events(session: AsyncSession) -> int:
    result = await session.execute(delete(models.Event))
    await session.commit()
    logger.info("Cleared %s events", result.rowcount)
    return result.rowcount


async def update_base_year(session: AsyncSession, new_year: int) -> int:
    """Move every nth-weekday event to ``new_year``; fixed and relative events are left alone."""
    result = await session.execute(
        update(models.Event).where(models.Event.date_type == "nth").values(base_year=new_year)
    )
    await session.commit()
    logger.info("Re-based %s nth events to %s", result.rowcount, new_year)
    return result.rowcount
