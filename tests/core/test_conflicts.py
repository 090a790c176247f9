'''
testing core/conflicts.py
'''
from timetable_viability.core.conflicts import detect_conflicts, find_class_work_overlaps
from timetable_viability.database.db_enums import ConflictType, Severity
from tests.helpers import academic, work, build_calendar


def _types(conflicts):
    return [c.conflict_type for c in conflicts]


class TestDetectConflicts:

    def test_empty_calendar_has_no_conflicts(self):
        assert detect_conflicts(build_calendar()) == []

    def test_day_exceeding_mandatory_hours(self):
        calendar = build_calendar(academic_events=[academic("Monday", "08:00", "17:00")])
        conflicts = detect_conflicts(calendar)

        assert len(conflicts) == 1
        conflict = conflicts[0]
        assert conflict.conflict_type == ConflictType.DAY_EXCEEDS_HOURS
        assert conflict.day == "Monday"
        assert conflict.severity == Severity.HIGH
        assert conflict.details == "9.0 mandatory hours exceeds sustainable limit"
        assert conflict.resolved is False

    def test_optional_classes_do_not_count_towards_day_limit(self):
        calendar = build_calendar(academic_events=[academic("Monday", "08:00", "17:00", mandatory=False)])
        assert detect_conflicts(calendar) == []

    def test_exactly_eight_mandatory_hours_is_not_a_conflict(self):
        calendar = build_calendar(academic_events=[academic("Friday", "09:00", "17:00")])
        assert detect_conflicts(calendar) == []

    def test_short_transition(self):
        calendar = build_calendar(
            academic_events=[academic("Tuesday", "09:00", "10:00"), academic("Tuesday", "10:03", "11:00")]
        )
        conflicts = detect_conflicts(calendar)
        assert _types(conflicts) == [ConflictType.UNREALISTIC_TRANSITION]
        assert conflicts[0].severity == Severity.MEDIUM
        assert conflicts[0].day == "Tuesday"
        assert conflicts[0].details == "Only 3 minutes between sessions (unrealistic transition)"

    def test_touching_events_are_not_a_transition_problem(self):
        calendar = build_calendar(
            academic_events=[academic("Tuesday", "09:00", "10:00"), academic("Tuesday", "10:00", "11:00")]
        )
        assert detect_conflicts(calendar) == []

    def test_five_minute_gap_is_realistic(self):
        calendar = build_calendar(
            academic_events=[academic("Tuesday", "09:00", "10:00"), academic("Tuesday", "10:05", "11:00")]
        )
        assert detect_conflicts(calendar) == []

    def test_excessive_sessions(self):
        calendar = build_calendar(academic_events=[
            academic("Wednesday", "09:00", "10:00"),
            academic("Wednesday", "10:10", "11:00"),
            academic("Wednesday", "11:10", "12:00"),
            academic("Wednesday", "12:10", "13:00"),
        ])
        conflicts = detect_conflicts(calendar)
        assert _types(conflicts) == [ConflictType.EXCESSIVE_SESSIONS]
        assert conflicts[0].severity == Severity.MEDIUM
        assert conflicts[0].details == "4 consecutive sessions with minimal breaks"

    def test_short_gaps_must_be_consecutive(self):
        calendar = build_calendar(academic_events=[
            academic("Wednesday", "09:00", "10:00"),
            academic("Wednesday", "10:10", "11:00"),
            academic("Wednesday", "11:10", "12:00"),
            academic("Wednesday", "13:00", "14:00"),
            academic("Wednesday", "14:10", "15:00"),
        ])
        assert ConflictType.EXCESSIVE_SESSIONS not in _types(detect_conflicts(calendar))

    def test_class_work_overlap_is_reported_by_both_passes(self):
        calendar = build_calendar(
            academic_events=[academic("Tuesday", "15:00", "17:00", event_type="lab", title="Chemistry Lab")],
            work_events=[work("Tuesday", "14:00", "16:00", title="Cafe shift")],
        )
        conflicts = detect_conflicts(calendar)

        assert _types(conflicts) == [ConflictType.CLASS_WORK_OVERLAP, ConflictType.CLASS_WORK_OVERLAP]
        assert all(c.severity == Severity.HIGH for c in conflicts)
        assert all(c.day == "Tuesday" for c in conflicts)
        assert conflicts[0].details == "Events overlap: Cafe shift and Chemistry Lab"
        assert conflicts[1].details == "Mandatory Chemistry Lab overlaps with Cafe shift"

    def test_overlap_across_dated_weeks_is_detected(self):
        calendar = build_calendar(
            academic_events=[academic("Tuesday", "15:00", "17:00", event_type="lab")],
            work_events=[work("Tuesday", "14:00", "16:00", weeks=1)],
        )
        conflicts = detect_conflicts(calendar)

        assert _types(conflicts) == [ConflictType.CLASS_WORK_OVERLAP, ConflictType.CLASS_WORK_OVERLAP]
        assert all(c.severity == Severity.HIGH for c in conflicts)
        assert all(c.day == "Tuesday" for c in conflicts)

    def test_overlap_details_fall_back_to_generic_labels(self):
        calendar = build_calendar(
            academic_events=[academic("Thursday", "10:00", "12:00")],
            work_events=[work("Thursday", "11:00", "13:00")],
        )
        details = [c.details for c in detect_conflicts(calendar)]
        assert "Events overlap: Event and Event" in details
        assert "Mandatory class overlaps with work shift" in details

    def test_output_is_ordered_by_pass(self):
        calendar = build_calendar(
            academic_events=[
                academic("Monday", "09:00", "10:00"),
                academic("Monday", "10:02", "11:00"),
                academic("Friday", "08:00", "17:30"),
            ],
            work_events=[work("Monday", "10:30", "12:00")],
        )
        assert _types(detect_conflicts(calendar)) == [
            ConflictType.DAY_EXCEEDS_HOURS,
            ConflictType.UNREALISTIC_TRANSITION,
            ConflictType.CLASS_WORK_OVERLAP,
            ConflictType.CLASS_WORK_OVERLAP,
        ]


class TestFindClassWorkOverlaps:

    def test_class_overlapping_two_shifts_is_paired_once(self):
        calendar = build_calendar(
            academic_events=[academic("Monday", "09:00", "15:00")],
            work_events=[work("Monday", "08:00", "10:00"), work("Monday", "14:00", "18:00")],
        )
        overlaps = find_class_work_overlaps(calendar.events_by_day()[1])
        assert len(overlaps) == 1

    def test_adjacent_class_and_shift_do_not_overlap(self):
        calendar = build_calendar(
            academic_events=[academic("Monday", "09:00", "12:00")],
            work_events=[work("Monday", "12:00", "16:00")],
        )
        assert find_class_work_overlaps(calendar.events_by_day()[1]) == []
