'''
Portfolio-wide rollup models
'''
from datetime import datetime

from pydantic import BaseModel

from ..database.db_enums import ScoreBand


class CalendarRiskSummary(BaseModel):
    total_students_analyzed: int
    strained_timetables_count: int
    strained_timetables_percentage: int
    at_risk_count: int
    at_risk_percentage: int
    conflicts_detected: int
    average_feasibility_score: int
    active_viability_risks: int


class AnonymizedCase(BaseModel):
    case_id: str
    feasibility_score: int
    score_band: ScoreBand
    conflicts_count: int
    primary_conflict_type: str
    weeks_to_risk: int


class ConflictTypeCount(BaseModel):
    type: str
    count: int


class PilotReport(BaseModel):
    report_generated_at: datetime
    total_students_analyzed: int
    unfeasible_timetables_count: int
    unfeasible_timetables_percentage: int
    strained_timetables_count: int
    strained_timetables_percentage: int
    flagged_before_attendance_drop: int
    average_weeks_early_warning: float
    anonymized_examples: list[AnonymizedCase]
    conflict_breakdown: list[ConflictTypeCount]
    summary_insights: list[str]
