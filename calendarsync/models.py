import uuid
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import Date, DateTime, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for declarative SQLAlchemy models."""


class Event(Base):
    __tablename__ = "calendarsync_events"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_type: Mapped[str] = mapped_column(String(16), nullable=False)

    # fixed
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    # nth
    nth_occurrence: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    day_of_week: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    base_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # relative
    relative_period: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    relative_unit: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    relative_direction: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    relative_event_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
