'''
Weighted penalty model producing a 0-100 feasibility score and a band.
'''
from ..common.config import FeasibilityThresholds
from ..database.db_enums import FactorKey, ScoreBand
from ..models.calendar import CalendarEvent, WeeklyCalendarSummary, day_name
from ..models.feasibility import FeasibilityFactor, FeasibilityResult
from .calendar_aggregator import adjacent_gaps_minutes, longest_run
from .conflicts import find_class_work_overlaps


def clamp_score(raw_score: int) -> int:
    return max(0, min(100, raw_score))


def score_band(score: int, thresholds: FeasibilityThresholds | None = None) -> ScoreBand:
    thresholds = thresholds or FeasibilityThresholds()
    if score >= thresholds.FEASIBLE_MIN_SCORE:
        return ScoreBand.FEASIBLE
    if score >= thresholds.STRAINED_MIN_SCORE:
        return ScoreBand.STRAINED
    return ScoreBand.AT_RISK


def _hours(events: list[CalendarEvent]) -> float:
    return sum(event.duration_hours for event in events)


def _daily_mandatory_factors(by_day: dict[int, list[CalendarEvent]], t: FeasibilityThresholds) -> list[FeasibilityFactor]:
    factors = []
    for day, events in by_day.items():
        hours = _hours([e for e in events if e.mandatory])
        if hours > t.DAILY_MANDATORY_EXCESSIVE_HOURS:
            factors.append(FeasibilityFactor(
                factor=FactorKey.EXCESSIVE_DAILY_MANDATORY,
                impact=t.EXCESSIVE_DAILY_MANDATORY_PENALTY,
                description=f"{day_name(day)} has {hours:.1f} mandatory hours (>{t.DAILY_MANDATORY_EXCESSIVE_HOURS:g} hours)",
            ))
        elif hours > t.DAILY_MANDATORY_HIGH_HOURS:
            factors.append(FeasibilityFactor(
                factor=FactorKey.HIGH_DAILY_MANDATORY,
                impact=t.HIGH_DAILY_MANDATORY_PENALTY,
                description=f"{day_name(day)} has {hours:.1f} mandatory hours (>{t.DAILY_MANDATORY_HIGH_HOURS:g} hours)",
            ))
    return factors


def _session_clustering_factors(by_day: dict[int, list[CalendarEvent]], t: FeasibilityThresholds) -> list[FeasibilityFactor]:
    factors = []
    for day, events in by_day.items():
        run = longest_run(gap < t.BACK_TO_BACK_GAP_MINUTES for gap in adjacent_gaps_minutes(events))
        if run >= t.MIN_CLUSTERED_GAPS:
            factors.append(FeasibilityFactor(
                factor=FactorKey.SESSION_CLUSTERING,
                impact=t.SESSION_CLUSTERING_PENALTY,
                description=f"{day_name(day)} has {run + 1} back-to-back sessions",
            ))
    return factors


def _class_work_overlap_factors(by_day: dict[int, list[CalendarEvent]], t: FeasibilityThresholds) -> list[FeasibilityFactor]:
    # One penalty per overlapping class event
    return [
        FeasibilityFactor(
            factor=FactorKey.CLASS_WORK_OVERLAP,
            impact=t.CLASS_WORK_OVERLAP_PENALTY,
            description=f"{day_name(day)}: Class overlaps with work schedule",
        )
        for day, events in by_day.items()
        for _ in find_class_work_overlaps(events)
    ]


def _weekly_load_factors(total_hours: float, t: FeasibilityThresholds) -> list[FeasibilityFactor]:
    if total_hours > t.WEEKLY_LOAD_EXCESSIVE_HOURS:
        return [FeasibilityFactor(
            factor=FactorKey.EXCESSIVE_WEEKLY_LOAD,
            impact=t.EXCESSIVE_WEEKLY_LOAD_PENALTY,
            description=f"Total weekly commitment of {total_hours:.1f} hours (>{t.WEEKLY_LOAD_EXCESSIVE_HOURS:g} hours)",
        )]
    if total_hours > t.WEEKLY_LOAD_HIGH_HOURS:
        return [FeasibilityFactor(
            factor=FactorKey.HIGH_WEEKLY_LOAD,
            impact=t.HIGH_WEEKLY_LOAD_PENALTY,
            description=f"Total weekly commitment of {total_hours:.1f} hours (>{t.WEEKLY_LOAD_HIGH_HOURS:g} hours)",
        )]
    return []


def _consecutive_heavy_day_factors(by_day: dict[int, list[CalendarEvent]], t: FeasibilityThresholds) -> list[FeasibilityFactor]:
    """Runs of adjacent weekday numbers, no wrap from Saturday to Sunday."""
    heavy_days = {day for day, events in by_day.items() if _hours(events) > t.HEAVY_DAY_HOURS}
    run = longest_run(day in heavy_days for day in range(7))
    if run >= t.MIN_CONSECUTIVE_HEAVY_DAYS:
        return [FeasibilityFactor(
            factor=FactorKey.CONSECUTIVE_HEAVY_DAYS,
            impact=t.CONSECUTIVE_HEAVY_DAYS_PENALTY,
            description=f"{run} consecutive days with >{t.HEAVY_DAY_HOURS:g} hours of commitments",
        )]
    return []


def score_feasibility(
    calendar: WeeklyCalendarSummary,
    thresholds: FeasibilityThresholds | None = None
) -> FeasibilityResult:
    """
    Starts from the baseline and applies every rule independently. The running
    sum may go negative; only the final score is clamped to [0, 100].
    """
    thresholds = thresholds or FeasibilityThresholds()
    by_day = calendar.events_by_day()

    factors = [
        *_daily_mandatory_factors(by_day, thresholds),
        *_session_clustering_factors(by_day, thresholds),
        *_class_work_overlap_factors(by_day, thresholds),
        *_weekly_load_factors(calendar.total_hours, thresholds),
        *_consecutive_heavy_day_factors(by_day, thresholds),
    ]

    raw_score = thresholds.BASELINE_SCORE + sum(f.impact for f in factors)
    final_score = clamp_score(raw_score)
    return FeasibilityResult(
        score=final_score,
        band=score_band(final_score, thresholds),
        factors=factors,
    )
