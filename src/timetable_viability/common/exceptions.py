"""
This file contains custom, application-specific exceptions.
"""
from uuid import UUID


class CalendarDataError(Exception):
    """Base class for problems with a student's calendar source data."""
    def __init__(self, student_id: UUID | None, detail: str):
        self.student_id = student_id
        self.detail = detail
        super().__init__(detail)


class MalformedEventError(CalendarDataError):
    """Raised when a source event carries a value the engine does not recognize."""
    pass


class NoCalendarDataError(CalendarDataError):
    """Raised when a student has neither source events nor a calendar summary."""
    def __init__(self, student_id: UUID):
        super().__init__(student_id, "No calendar data found")
