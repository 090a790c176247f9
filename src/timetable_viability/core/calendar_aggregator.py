'''
Folds a student's academic and work/personal events into one representative
week: a normalized event list, per-category hour totals and weekday free-time
blocks.

Events are treated as recurring weekly patterns: each one is moved onto its
weekday inside the reference week, keeping its time of day and duration, so
events from different calendar weeks can overlap or cluster.
'''
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Iterable, Mapping, Optional
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from ..common.clock import get_timezone, iso_week_start
from ..common.config import FeasibilityThresholds
from ..common.exceptions import MalformedEventError
from ..common.logger import log
from ..database.db_enums import EventCategory, AcademicEventType, WorkEventType
from ..models.calendar import CalendarEvent, FreeTimeBlock, WeeklyCalendarSummary

_DATETIME = TypeAdapter(datetime)

# Monday..Friday in the 0=Sunday numbering
WEEKDAYS = range(1, 6)


def weekday_index(moment: datetime) -> int:
    """0=Sunday ... 6=Saturday."""
    return (moment.weekday() + 1) % 7


def adjacent_gaps_minutes(events: list[CalendarEvent]) -> list[float]:
    """Gap between each event's end and the next event's start. Negative means overlap."""
    return [
        (current.start - previous.end).total_seconds() / 60
        for previous, current in zip(events, events[1:])
    ]


def longest_run(flags: Iterable[bool]) -> int:
    longest = current = 0
    for flag in flags:
        current = current + 1 if flag else 0
        longest = max(longest, current)
    return longest


def _localize(moment: datetime, tz: tzinfo) -> datetime:
    # Naive values (e.g. from SQLite) are taken to be local already.
    if moment.tzinfo is None:
        return moment.replace(tzinfo=tz)
    return moment.astimezone(tz)


def fold_into_week(start: datetime, end: datetime, week_start: date) -> tuple[datetime, datetime]:
    """
    Moves an interval onto the same weekday and time of day inside the week
    beginning `week_start` (a Monday). The duration is unchanged.
    """
    folded_day = week_start + timedelta(days=start.weekday())
    folded_start = datetime.combine(folded_day, start.timetz())
    return folded_start, folded_start + (end - start)


def _parse_interval(
    raw: Mapping[str, Any],
    tz: tzinfo,
    student_id: UUID,
    week_start: date
) -> Optional[tuple[datetime, datetime]]:
    """
    Returns the localized (start, end) of a source event folded into the
    representative week, or None when the event's timestamps are unusable.
    A bad event is skipped, not fatal.
    """
    try:
        start = _DATETIME.validate_python(raw.get("start_time"))
        end = _DATETIME.validate_python(raw.get("end_time"))
    except ValidationError as e:
        log.warning(f"Skipping event with unparseable timestamps for student {student_id}: {e.errors()[0]['msg']}")
        return None

    start, end = _localize(start, tz), _localize(end, tz)
    if end <= start:
        log.warning(f"Skipping event for student {student_id}: end {end.isoformat()} is not after start {start.isoformat()}.")
        return None
    return fold_into_week(start, end, week_start)


def _parse_enum(enum_cls, raw: Mapping[str, Any], student_id: UUID):
    value = raw.get("event_type")
    try:
        return enum_cls(value)
    except ValueError:
        raise MalformedEventError(
            student_id,
            f"Unrecognized event_type {value!r}; expected one of {enum_cls.get_all_names()}"
        )


def normalize_academic_event(raw: Mapping[str, Any], tz: tzinfo, student_id: UUID, week_start: date) -> Optional[CalendarEvent]:
    _parse_enum(AcademicEventType, raw, student_id)
    mandatory = raw.get("mandatory")
    if not isinstance(mandatory, bool):
        raise MalformedEventError(student_id, f"Academic event 'mandatory' must be a boolean, got {mandatory!r}")

    interval = _parse_interval(raw, tz, student_id, week_start)
    if interval is None:
        return None
    start, end = interval
    return CalendarEvent(
        category=EventCategory.CLASS,
        start=start,
        end=end,
        mandatory=mandatory,
        day_of_week=weekday_index(start),
        label=raw.get("title"),
    )


def normalize_work_event(raw: Mapping[str, Any], tz: tzinfo, student_id: UUID, week_start: date) -> Optional[CalendarEvent]:
    _parse_enum(WorkEventType, raw, student_id)
    interval = _parse_interval(raw, tz, student_id, week_start)
    if interval is None:
        return None
    start, end = interval
    return CalendarEvent(
        category=EventCategory.WORK,
        start=start,
        end=end,
        mandatory=False,
        day_of_week=weekday_index(start),
        label=raw.get("title"),
    )


def calculate_free_time_blocks(
    events: list[CalendarEvent],
    window_start: str = "09:00",
    window_end: str = "17:00"
) -> list[FreeTimeBlock]:
    """
    Gaps inside the daily window for Monday to Friday. A weekday without
    events is free for the whole window.
    """
    by_day: dict[int, list[CalendarEvent]] = {}
    for event in events:
        by_day.setdefault(event.day_of_week, []).append(event)

    blocks = []
    for day in WEEKDAYS:
        day_events = sorted(by_day.get(day, []), key=lambda e: e.start)
        if not day_events:
            blocks.append(FreeTimeBlock(day=day, start=window_start, end=window_end))
            continue

        # HH:MM strings compare chronologically
        last_end = window_start
        for event in day_events:
            event_start = event.start.strftime("%H:%M")
            if event_start > last_end:
                blocks.append(FreeTimeBlock(day=day, start=last_end, end=min(event_start, window_end)))
            event_end = event.end.strftime("%H:%M")
            if event_end > last_end:
                last_end = event_end
            if last_end >= window_end:
                break
        if last_end < window_end:
            blocks.append(FreeTimeBlock(day=day, start=last_end, end=window_end))

    return [block for block in blocks if block.start < block.end]


def aggregate_weekly_calendar(
    student_id: UUID,
    academic_events: Iterable[Mapping[str, Any]],
    work_events: Iterable[Mapping[str, Any]],
    reference_time: datetime,
    thresholds: FeasibilityThresholds | None = None,
) -> WeeklyCalendarSummary:
    """
    Builds the WeeklyCalendarSummary of the ISO week containing
    `reference_time`. Pure function of its inputs.

    Raises MalformedEventError for an unrecognized event type; events with
    bad timestamps are skipped.
    """
    thresholds = thresholds or FeasibilityThresholds()
    tz = reference_time.tzinfo or get_timezone()
    week_start = iso_week_start(reference_time)

    weekly_calendar: list[CalendarEvent] = []
    total_class_hours = 0.0
    total_mandatory_hours = 0.0
    total_work_hours = 0.0
    skipped = 0

    for raw in academic_events:
        event = normalize_academic_event(raw, tz, student_id, week_start)
        if event is None:
            skipped += 1
            continue
        hours = event.duration_hours
        total_class_hours += hours
        if event.mandatory:
            total_mandatory_hours += hours
        weekly_calendar.append(event)

    for raw in work_events:
        event = normalize_work_event(raw, tz, student_id, week_start)
        if event is None:
            skipped += 1
            continue
        total_work_hours += event.duration_hours
        weekly_calendar.append(event)

    if skipped:
        log.warning(f"Skipped {skipped} malformed event(s) while aggregating calendar for student {student_id}.")

    return WeeklyCalendarSummary(
        student_id=student_id,
        week_start=week_start,
        events=weekly_calendar,
        total_class_hours=total_class_hours,
        total_mandatory_hours=total_mandatory_hours,
        total_work_hours=total_work_hours,
        free_time_blocks=calculate_free_time_blocks(
            weekly_calendar,
            thresholds.FREE_WINDOW_START,
            thresholds.FREE_WINDOW_END
        ),
    )
