'''
testing core/calendar_aggregator.py
'''
import pytest
from datetime import datetime, timezone

from timetable_viability.common.config import FeasibilityThresholds
from timetable_viability.common.exceptions import MalformedEventError
from timetable_viability.core.calendar_aggregator import (
    aggregate_weekly_calendar,
    calculate_free_time_blocks,
    weekday_index,
    adjacent_gaps_minutes,
    longest_run,
)
from timetable_viability.database.db_enums import EventCategory
from tests.constants import TEST_REFERENCE_TIME, TEST_WEEK_START, TEST_STUDENT_ID
from tests.helpers import academic, work, build_calendar, at


class TestAggregation:

    def test_empty_sources_give_empty_week(self):
        summary = build_calendar()
        assert summary.student_id == TEST_STUDENT_ID
        assert summary.week_start == TEST_WEEK_START
        assert summary.events == []
        assert summary.total_class_hours == 0
        assert summary.total_mandatory_hours == 0
        assert summary.total_work_hours == 0

    def test_hour_totals_by_category(self):
        summary = build_calendar(
            academic_events=[
                academic("Monday", "09:00", "11:00"),
                academic("Tuesday", "13:00", "14:30", mandatory=False, event_type="seminar"),
            ],
            work_events=[work("Wednesday", "18:00", "22:00")],
        )
        assert summary.total_class_hours == pytest.approx(3.5)
        assert summary.total_mandatory_hours == pytest.approx(2.0)
        assert summary.total_work_hours == pytest.approx(4.0)
        assert summary.total_hours == pytest.approx(7.5)

    def test_normalized_events_keep_source_order_and_derive_weekday(self):
        summary = build_calendar(
            academic_events=[academic("Thursday", "10:00", "12:00", title="Algorithms")],
            work_events=[work("Sunday", "08:00", "12:00", event_type="personal", title="Family")],
        )
        lecture, shift = summary.events
        assert lecture.category == EventCategory.CLASS
        assert lecture.day_of_week == 4
        assert lecture.label == "Algorithms"
        assert lecture.mandatory is True
        assert shift.category == EventCategory.WORK
        assert shift.day_of_week == 0
        assert shift.mandatory is False

    def test_week_start_is_iso_monday_of_reference_time(self):
        sunday_evening = datetime(2025, 3, 16, 23, 30, tzinfo=timezone.utc)
        summary = aggregate_weekly_calendar(TEST_STUDENT_ID, [], [], reference_time=sunday_evening)
        assert summary.week_start == TEST_WEEK_START

    def test_iso_timestamp_strings_are_accepted(self):
        raw = {
            "event_type": "lab",
            "start_time": "2025-03-11T15:00:00+00:00",
            "end_time": "2025-03-11T17:00:00+00:00",
            "mandatory": True,
        }
        summary = aggregate_weekly_calendar(TEST_STUDENT_ID, [raw], [], reference_time=TEST_REFERENCE_TIME)
        assert len(summary.events) == 1
        assert summary.events[0].day_of_week == 2

    def test_naive_timestamps_are_read_as_local_time(self):
        raw = {
            "event_type": "lecture",
            "start_time": datetime(2025, 3, 10, 9, 0),
            "end_time": datetime(2025, 3, 10, 10, 0),
            "mandatory": True,
        }
        summary = aggregate_weekly_calendar(TEST_STUDENT_ID, [raw], [], reference_time=TEST_REFERENCE_TIME)
        assert summary.events[0].start == at("Monday", "09:00")

    def test_event_ending_before_it_starts_is_skipped(self):
        summary = build_calendar(
            academic_events=[
                academic("Monday", "11:00", "09:00"),
                academic("Monday", "12:00", "12:00"),
                academic("Tuesday", "09:00", "10:00"),
            ]
        )
        assert len(summary.events) == 1
        assert summary.total_class_hours == pytest.approx(1.0)

    def test_unparseable_timestamp_is_skipped(self):
        bad = {"event_type": "work", "start_time": "next tuesday-ish", "end_time": None}
        summary = build_calendar(work_events=[bad, work("Friday", "09:00", "13:00")])
        assert len(summary.events) == 1
        assert summary.total_work_hours == pytest.approx(4.0)

    def test_unrecognized_event_type_is_rejected(self):
        with pytest.raises(MalformedEventError) as e:
            build_calendar(academic_events=[academic("Monday", "09:00", "10:00", event_type="party")])
        assert e.value.student_id == TEST_STUDENT_ID
        assert "party" in str(e.value)

    def test_non_boolean_mandatory_flag_is_rejected(self):
        raw = academic("Monday", "09:00", "10:00")
        raw["mandatory"] = "yes"
        with pytest.raises(MalformedEventError):
            build_calendar(academic_events=[raw])

    def test_recompute_is_deterministic(self):
        sources = dict(
            academic_events=[academic("Monday", "09:00", "11:00"), academic("Monday", "11:05", "12:00")],
            work_events=[work("Monday", "10:00", "14:00")],
        )
        first = build_calendar(**sources)
        second = build_calendar(**sources)
        assert first.model_dump_json() == second.model_dump_json()

    def test_events_from_other_weeks_are_folded_into_reference_week(self):
        summary = build_calendar(
            academic_events=[academic("Tuesday", "15:00", "17:00", weeks=-3)],
            work_events=[work("Friday", "18:30", "22:00", weeks=2)],
        )
        lab, shift = summary.events
        assert lab.start == at("Tuesday", "15:00")
        assert lab.end == at("Tuesday", "17:00")
        assert lab.day_of_week == 2
        assert shift.start == at("Friday", "18:30")
        assert shift.day_of_week == 5
        assert shift.duration_hours == pytest.approx(3.5)
        assert all(e.start.date() >= TEST_WEEK_START for e in summary.events)

    def test_folded_event_crossing_midnight_keeps_its_duration(self):
        night_shift = {
            "event_type": "work",
            "start_time": at("Saturday", "22:00", weeks=-1),
            "end_time": at("Sunday", "02:00", weeks=-1),
        }
        shift = build_calendar(work_events=[night_shift]).events[0]
        assert shift.start == at("Saturday", "22:00")
        assert shift.end == at("Sunday", "02:00")
        assert shift.day_of_week == 6
        assert shift.duration_hours == pytest.approx(4.0)


class TestFreeTimeBlocks:

    def test_weekdays_without_events_are_fully_free(self):
        blocks = build_calendar().free_time_blocks
        assert [(b.day, b.start, b.end) for b in blocks] == [
            (day, "09:00", "17:00") for day in range(1, 6)
        ]

    def test_gaps_between_events_within_window(self):
        summary = build_calendar(
            academic_events=[academic("Monday", "10:00", "11:00"), academic("Monday", "13:00", "14:30")]
        )
        monday = [(b.start, b.end) for b in summary.free_time_blocks if b.day == 1]
        assert monday == [("09:00", "10:00"), ("11:00", "13:00"), ("14:30", "17:00")]

    def test_overlapping_events_do_not_open_false_gaps(self):
        summary = build_calendar(
            academic_events=[academic("Tuesday", "09:00", "13:00")],
            work_events=[work("Tuesday", "10:00", "11:00")],
        )
        tuesday = [(b.start, b.end) for b in summary.free_time_blocks if b.day == 2]
        assert tuesday == [("13:00", "17:00")]

    def test_fully_booked_day_has_no_blocks(self):
        summary = build_calendar(work_events=[work("Wednesday", "08:00", "18:00")])
        assert [b for b in summary.free_time_blocks if b.day == 3] == []

    def test_weekend_events_do_not_produce_blocks(self):
        summary = build_calendar(work_events=[work("Saturday", "10:00", "12:00")])
        assert {b.day for b in summary.free_time_blocks} == {1, 2, 3, 4, 5}

    def test_window_is_configurable(self):
        blocks = calculate_free_time_blocks([], window_start="08:00", window_end="20:00")
        assert all((b.start, b.end) == ("08:00", "20:00") for b in blocks)

    def test_thresholds_window_used_by_aggregator(self):
        thresholds = FeasibilityThresholds(FREE_WINDOW_START="10:00", FREE_WINDOW_END="16:00")
        summary = build_calendar(thresholds=thresholds)
        assert summary.free_time_blocks[0].start == "10:00"
        assert summary.free_time_blocks[0].end == "16:00"


class TestHelpers:

    def test_weekday_index_is_sunday_based(self):
        assert weekday_index(at("Sunday", "12:00")) == 0
        assert weekday_index(at("Monday", "12:00")) == 1
        assert weekday_index(at("Saturday", "12:00")) == 6

    def test_adjacent_gaps_report_overlap_as_negative(self):
        summary = build_calendar(
            academic_events=[academic("Monday", "09:00", "10:00")],
            work_events=[work("Monday", "09:30", "11:00"), work("Monday", "11:10", "12:00")],
        )
        events = summary.events_by_day()[1]
        assert adjacent_gaps_minutes(events) == [-30, 10]

    def test_longest_run(self):
        assert longest_run([]) == 0
        assert longest_run([True, True, False, True, True, True]) == 3
