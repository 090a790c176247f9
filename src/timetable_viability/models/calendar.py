'''
Calendar API and domain models
'''
from datetime import date, datetime
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..database.db_enums import EventCategory, AcademicEventType, WorkEventType

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def day_name(day_of_week: int) -> str:
    """0=Sunday ... 6=Saturday."""
    if 0 <= day_of_week <= 6:
        return DAY_NAMES[day_of_week]
    raise ValueError("day_of_week must be between 0 and 6")


class _TimedInput(BaseModel):
    start_time: datetime
    end_time: datetime

    @model_validator(mode='after')
    def check_interval(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

# --- 1. API Input Models (for POST) ---

class AcademicEventCreate(_TimedInput):
    """
    Validates a class/seminar/lab event pushed by the timetable source.
    """
    student_id: UUID
    event_type: AcademicEventType
    mandatory: bool
    title: Optional[str] = None


class WorkEventCreate(_TimedInput):
    """
    Validates a work shift or personal commitment. These are never mandatory.
    """
    student_id: UUID
    event_type: WorkEventType
    title: Optional[str] = None


AcademicEventsPayload = Union[AcademicEventCreate, list[AcademicEventCreate]]
WorkEventsPayload = Union[WorkEventCreate, list[WorkEventCreate]]


class EventsCreatedResponse(BaseModel):
    created: int
    student_ids: list[UUID]
    message: str

# --- 2. Normalized calendar ---

class CalendarEvent(BaseModel):
    """
    A single recurring weekly slot, normalized from either event source.
    `day_of_week` is always derived from `start` by the aggregator.
    """
    category: EventCategory
    start: datetime
    end: datetime
    mandatory: bool
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday, 6=Saturday")
    label: Optional[str] = None

    @model_validator(mode='after')
    def check_interval(self):
        if self.end <= self.start:
            raise ValueError("CalendarEvent end must be after start")
        return self

    @property
    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600


class FreeTimeBlock(BaseModel):
    day: int = Field(..., ge=0, le=6)
    start: str = Field(..., description="HH:MM")
    end: str = Field(..., description="HH:MM")


class WeeklyCalendarSummary(BaseModel):
    """
    Derived cache of one student's representative week. Always fully
    rebuildable from the source events.
    """
    student_id: UUID
    week_start: date
    events: list[CalendarEvent] = Field(default_factory=list, validation_alias='weekly_calendar')
    total_class_hours: float = 0.0
    total_mandatory_hours: float = 0.0
    total_work_hours: float = 0.0
    free_time_blocks: list[FreeTimeBlock] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @property
    def total_hours(self) -> float:
        return self.total_class_hours + self.total_work_hours

    def events_by_day(self) -> dict[int, list[CalendarEvent]]:
        """Events grouped by weekday, days in ascending order, events in start order."""
        groups: dict[int, list[CalendarEvent]] = {}
        for event in self.events:
            groups.setdefault(event.day_of_week, []).append(event)
        return {
            day: sorted(groups[day], key=lambda e: e.start)
            for day in sorted(groups)
        }
