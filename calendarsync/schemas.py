from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from calendarsync.services.resolver import DateResolutionError, parse_civil_date

DateType = Literal["fixed", "nth", "relative"]
RelativeUnit = Literal["days", "weeks", "months", "years"]
RelativeDirection = Literal["before", "after"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _civil_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    try:
        return parse_civil_date(value)
    except DateResolutionError as exc:
        raise ValueError(str(exc)) from exc


def _occurrence(value: Optional[int]) -> Optional[int]:
    if value == 0:
        raise ValueError("nthOccurrence must be 1-4 or -1 for the last occurrence")
    return value


class EventCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    date_type: DateType

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    nth_occurrence: Optional[int] = Field(default=None, ge=-1, le=4)
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    base_year: Optional[int] = Field(default=None, ge=2020, le=2050)

    relative_period: Optional[int] = Field(default=None, gt=0)
    relative_unit: Optional[RelativeUnit] = None
    relative_direction: Optional[RelativeDirection] = None
    relative_event_name: Optional[str] = Field(default=None, max_length=255)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, value: Any) -> Optional[date]:
        return _civil_date(value)

    @field_validator("nth_occurrence")
    @classmethod
    def check_occurrence(cls, value: Optional[int]) -> Optional[int]:
        return _occurrence(value)


class EventUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    date_type: Optional[DateType] = None

    start_date: Optional[date] = None
    end_date: Optional[date] = None

    nth_occurrence: Optional[int] = Field(default=None, ge=-1, le=4)
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    month: Optional[int] = Field(default=None, ge=1, le=12)
    base_year: Optional[int] = Field(default=None, ge=2020, le=2050)

    relative_period: Optional[int] = Field(default=None, gt=0)
    relative_unit: Optional[RelativeUnit] = None
    relative_direction: Optional[RelativeDirection] = None
    relative_event_name: Optional[str] = Field(default=None, max_length=255)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def parse_dates(cls, value: Any) -> Optional[date]:
        return _civil_date(value)

    @field_validator("nth_occurrence")
    @classmethod
    def check_occurrence(cls, value: Optional[int]) -> Optional[int]:
        return _occurrence(value)

    @field_validator("title", "date_type")
    @classmethod
    def reject_null(cls, value: Optional[str]) -> str:
        # may be omitted from a patch, but not cleared
        if value is None:
            raise ValueError("may not be null")
        return value


class EventResponse(CamelModel):
    id: UUID
    title: str
    description: Optional[str]
    date_type: str

    start_date: Optional[date]
    end_date: Optional[date]

    nth_occurrence: Optional[int]
    day_of_week: Optional[int]
    month: Optional[int]
    base_year: Optional[int]

    relative_period: Optional[int]
    relative_unit: Optional[str]
    relative_direction: Optional[str]
    relative_event_name: Optional[str]

    created_at: datetime

    resolved_date: Optional[date] = None
    unresolved_reason: Optional[str] = None
    display_date: str


class ClearEventsResponse(CamelModel):
    message: str
    deleted_count: int


class YearUpdateRequest(CamelModel):
    new_year: int = Field(ge=2020, le=2050)


class YearUpdateResponse(CamelModel):
    message: str
    updated_count: int
    year: int


class ImportResult(CamelModel):
    message: str = ""
    total: int = 0
    successful: int = 0
    failed: int = 0
    errors: List[str] = Field(default_factory=list)
