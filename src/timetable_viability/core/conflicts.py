'''
Conflict detection over a normalized weekly calendar.

Conflicts are a present-tense snapshot for display. They are computed from
the same calendar as the feasibility factors but with their own rules, so the
two may disagree.
'''
from ..common.config import FeasibilityThresholds
from ..database.db_enums import ConflictType, Severity, EventCategory
from ..models.calendar import CalendarEvent, WeeklyCalendarSummary, day_name
from ..models.feasibility import CalendarConflict
from .calendar_aggregator import adjacent_gaps_minutes, longest_run


def _hours(events: list[CalendarEvent]) -> float:
    return sum(event.duration_hours for event in events)


def _format_minutes(minutes: float) -> str:
    return f"{minutes:g}"


def detect_day_exceeds_hours(day: int, events: list[CalendarEvent], thresholds: FeasibilityThresholds) -> list[CalendarConflict]:
    mandatory_hours = _hours([e for e in events if e.mandatory])
    if mandatory_hours > thresholds.DAILY_MANDATORY_EXCESSIVE_HOURS:
        return [CalendarConflict(
            conflict_type=ConflictType.DAY_EXCEEDS_HOURS,
            day=day_name(day),
            severity=Severity.HIGH,
            details=f"{mandatory_hours:.1f} mandatory hours exceeds sustainable limit",
        )]
    return []


def detect_adjacent_pair_conflicts(day: int, events: list[CalendarEvent], thresholds: FeasibilityThresholds) -> list[CalendarConflict]:
    """
    Scans chronologically adjacent pairs. A true overlap is reported as
    class_work_overlap whatever the categories, so the same overlap may also
    be reported by detect_class_work_overlaps with different details.
    """
    conflicts = []
    gaps = adjacent_gaps_minutes(events)
    for index, gap in enumerate(gaps):
        previous, current = events[index], events[index + 1]
        if gap < 0:
            conflicts.append(CalendarConflict(
                conflict_type=ConflictType.CLASS_WORK_OVERLAP,
                day=day_name(day),
                severity=Severity.HIGH,
                details=f"Events overlap: {previous.label or 'Event'} and {current.label or 'Event'}",
            ))
        elif 0 < gap < thresholds.UNREALISTIC_TRANSITION_MINUTES:
            conflicts.append(CalendarConflict(
                conflict_type=ConflictType.UNREALISTIC_TRANSITION,
                day=day_name(day),
                severity=Severity.MEDIUM,
                details=f"Only {_format_minutes(gap)} minutes between sessions (unrealistic transition)",
            ))
    return conflicts


def detect_excessive_sessions(day: int, events: list[CalendarEvent], thresholds: FeasibilityThresholds) -> list[CalendarConflict]:
    gaps = adjacent_gaps_minutes(events)
    run = longest_run(gap < thresholds.BACK_TO_BACK_GAP_MINUTES for gap in gaps)
    if run >= thresholds.MIN_CLUSTERED_GAPS:
        return [CalendarConflict(
            conflict_type=ConflictType.EXCESSIVE_SESSIONS,
            day=day_name(day),
            severity=Severity.MEDIUM,
            details=f"{run + 1} consecutive sessions with minimal breaks",
        )]
    return []


def find_class_work_overlaps(events: list[CalendarEvent]) -> list[tuple[CalendarEvent, CalendarEvent]]:
    """
    Pairs each class event with the first work event it intersects. A class
    overlapping several shifts is reported once.
    """
    classes = [e for e in events if e.category == EventCategory.CLASS]
    shifts = [e for e in events if e.category == EventCategory.WORK]
    overlaps = []
    for class_event in classes:
        for shift in shifts:
            if class_event.start < shift.end and class_event.end > shift.start:
                overlaps.append((class_event, shift))
                break
    return overlaps


def detect_class_work_overlaps(day: int, events: list[CalendarEvent]) -> list[CalendarConflict]:
    return [
        CalendarConflict(
            conflict_type=ConflictType.CLASS_WORK_OVERLAP,
            day=day_name(day),
            severity=Severity.HIGH,
            details=f"Mandatory {class_event.label or 'class'} overlaps with {shift.label or 'work shift'}",
        )
        for class_event, shift in find_class_work_overlaps(events)
    ]


def detect_conflicts(
    calendar: WeeklyCalendarSummary,
    thresholds: FeasibilityThresholds | None = None
) -> list[CalendarConflict]:
    """
    Runs every detector over every day. Ordered by pass, then by day:
    daily hours, adjacent pairs, session clusters, class/work overlaps.
    """
    thresholds = thresholds or FeasibilityThresholds()
    by_day = calendar.events_by_day()

    conflicts: list[CalendarConflict] = []
    for day, events in by_day.items():
        conflicts.extend(detect_day_exceeds_hours(day, events, thresholds))
    for day, events in by_day.items():
        conflicts.extend(detect_adjacent_pair_conflicts(day, events, thresholds))
        conflicts.extend(detect_excessive_sessions(day, events, thresholds))
    for day, events in by_day.items():
        conflicts.extend(detect_class_work_overlaps(day, events))
    return conflicts
