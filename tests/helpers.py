'''
Builders for calendars expressed as "<Day> HH:MM-HH:MM" slots in the test week.
`weeks` shifts a slot into an earlier (negative) or later (positive) calendar week.
'''
from datetime import datetime, timedelta
from uuid import UUID

from timetable_viability.core.calendar_aggregator import aggregate_weekly_calendar
from timetable_viability.models.calendar import WeeklyCalendarSummary
from tests.constants import TEST_REFERENCE_TIME, TEST_STUDENT_ID

_MONDAY = datetime.combine(TEST_REFERENCE_TIME.date() - timedelta(days=TEST_REFERENCE_TIME.weekday()), datetime.min.time(), tzinfo=TEST_REFERENCE_TIME.tzinfo)
_OFFSETS = {"Monday": 0, "Tuesday": 1, "Wednesday": 2, "Thursday": 3, "Friday": 4, "Saturday": 5, "Sunday": 6}


def at(day: str, hhmm: str, weeks: int = 0) -> datetime:
    hours, minutes = (int(part) for part in hhmm.split(":"))
    return _MONDAY + timedelta(weeks=weeks, days=_OFFSETS[day], hours=hours, minutes=minutes)


def academic(day: str, start: str, end: str, mandatory: bool = True, event_type: str = "lecture", title: str | None = None, weeks: int = 0) -> dict:
    return {
        "event_type": event_type,
        "start_time": at(day, start, weeks),
        "end_time": at(day, end, weeks),
        "mandatory": mandatory,
        "title": title,
    }


def work(day: str, start: str, end: str, event_type: str = "work", title: str | None = None, weeks: int = 0) -> dict:
    return {
        "event_type": event_type,
        "start_time": at(day, start, weeks),
        "end_time": at(day, end, weeks),
        "title": title,
    }


def build_calendar(academic_events=(), work_events=(), student_id: UUID = TEST_STUDENT_ID, thresholds=None) -> WeeklyCalendarSummary:
    return aggregate_weekly_calendar(
        student_id,
        list(academic_events),
        list(work_events),
        reference_time=TEST_REFERENCE_TIME,
        thresholds=thresholds,
    )
