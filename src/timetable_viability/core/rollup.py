'''
Read-side aggregation of the persisted feasibility, conflict and risk
records across every student in scope.
'''
from collections import Counter
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from ..database.db_enums import ScoreBand
from ..models.feasibility import FeasibilityRecord, ConflictRecord, ViabilityRiskRecord
from ..models.reports import CalendarRiskSummary, PilotReport, AnonymizedCase, ConflictTypeCount

MAX_ANONYMIZED_CASES = 5


def round_half_up(value: float, places: int = 0) -> Decimal:
    quantum = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)


def percentage(count: int, total: int) -> int:
    if total <= 0:
        return 0
    return int(round_half_up(count / total * 100))


def _count_band(records: Sequence[FeasibilityRecord], band: ScoreBand) -> int:
    return sum(1 for r in records if r.score_band == band)


def _unique_students(records: Sequence[FeasibilityRecord]) -> int:
    return len({r.student_id for r in records})


def average_score(records: Sequence[FeasibilityRecord]) -> int:
    """
    Mean over raw weekly records, not per student: a student with more
    analysed weeks weighs more.
    """
    if not records:
        return 0
    return int(round_half_up(sum(r.feasibility_score for r in records) / len(records)))


def average_weeks_early_warning(active_risks: Sequence[ViabilityRiskRecord]) -> float:
    if not active_risks:
        return 0.0
    mean = sum(r.weeks_to_risk for r in active_risks) / len(active_risks)
    return float(round_half_up(mean, 1))


def build_risk_summary(
    feasibility: Sequence[FeasibilityRecord],
    active_risks: Sequence[ViabilityRiskRecord],
    unresolved_conflicts: Sequence[ConflictRecord]
) -> CalendarRiskSummary:
    """
    Band counts are per record while percentages divide by unique students,
    matching the dashboard's long-standing figures.
    """
    total_students = _unique_students(feasibility)
    strained = _count_band(feasibility, ScoreBand.STRAINED)
    at_risk = _count_band(feasibility, ScoreBand.AT_RISK)

    return CalendarRiskSummary(
        total_students_analyzed=total_students,
        strained_timetables_count=strained,
        strained_timetables_percentage=percentage(strained, total_students),
        at_risk_count=at_risk,
        at_risk_percentage=percentage(at_risk, total_students),
        conflicts_detected=len(unresolved_conflicts),
        average_feasibility_score=average_score(feasibility),
        active_viability_risks=len(active_risks),
    )


def conflict_breakdown(conflicts: Sequence[ConflictRecord]) -> list[ConflictTypeCount]:
    """Histogram by conflict type, most frequent first, ties in encounter order."""
    counts = Counter(c.conflict_type.value for c in conflicts)
    return [
        ConflictTypeCount(type=conflict_type, count=count)
        for conflict_type, count in counts.most_common()
    ]


def anonymized_cases(
    feasibility: Sequence[FeasibilityRecord],
    conflicts: Sequence[ConflictRecord],
    active_risks: Sequence[ViabilityRiskRecord],
    limit: int = MAX_ANONYMIZED_CASES
) -> list[AnonymizedCase]:
    """
    The first `limit` strained or at-risk records in the order given,
    labelled CASE-001, CASE-002, ... with no student identifiers.
    """
    flagged = [
        r for r in feasibility
        if r.score_band in (ScoreBand.AT_RISK, ScoreBand.STRAINED)
    ][:limit]

    cases = []
    for index, record in enumerate(flagged, start=1):
        student_conflicts = [c for c in conflicts if c.student_id == record.student_id]
        student_risk = next((r for r in active_risks if r.student_id == record.student_id), None)
        cases.append(AnonymizedCase(
            case_id=f"CASE-{index:03d}",
            feasibility_score=record.feasibility_score,
            score_band=record.score_band,
            conflicts_count=len(student_conflicts),
            primary_conflict_type=student_conflicts[0].conflict_type.value if student_conflicts else "none",
            weeks_to_risk=student_risk.weeks_to_risk if student_risk else 0,
        ))
    return cases


def build_pilot_report(
    feasibility: Sequence[FeasibilityRecord],
    conflicts: Sequence[ConflictRecord],
    active_risks: Sequence[ViabilityRiskRecord],
    generated_at: datetime
) -> PilotReport:
    """
    `feasibility` is expected newest week first; the anonymized sample follows
    that order.
    """
    total_students = _unique_students(feasibility)
    unfeasible = _count_band(feasibility, ScoreBand.AT_RISK)
    strained = _count_band(feasibility, ScoreBand.STRAINED)
    unfeasible_pct = percentage(unfeasible, total_students)
    flagged = len(active_risks)
    early_warning = average_weeks_early_warning(active_risks)
    breakdown = conflict_breakdown(conflicts)

    insights = [
        f"{total_students} students analyzed for timetable feasibility",
        f"{unfeasible} students ({unfeasible_pct}%) have unfeasible timetables",
        f"{flagged} students flagged for early intervention",
        f"Average early warning window: {early_warning:g} weeks before potential attendance issues",
        f"Most common conflict type: {breakdown[0].type}" if breakdown else "No conflicts detected",
    ]

    return PilotReport(
        report_generated_at=generated_at,
        total_students_analyzed=total_students,
        unfeasible_timetables_count=unfeasible,
        unfeasible_timetables_percentage=unfeasible_pct,
        strained_timetables_count=strained,
        strained_timetables_percentage=percentage(strained, total_students),
        flagged_before_attendance_drop=flagged,
        average_weeks_early_warning=early_warning,
        anonymized_examples=anonymized_cases(feasibility, conflicts, active_risks),
        conflict_breakdown=breakdown,
        summary_insights=insights,
    )
