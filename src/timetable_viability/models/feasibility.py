'''
Feasibility, conflict and viability risk models
'''
from datetime import date, datetime
from typing import Optional, Literal, Annotated, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..database.db_enums import ConflictType, Severity, ScoreBand, RiskConfidence, FactorKey
from .calendar import CalendarEvent, FreeTimeBlock

# --- 1. Engine outputs ---

class FeasibilityFactor(BaseModel):
    """One scoring rule that fired, with its signed impact on the score."""
    factor: FactorKey
    impact: int
    description: str


class CalendarConflict(BaseModel):
    conflict_type: ConflictType
    day: str
    severity: Severity
    details: str
    resolved: bool = False

    model_config = ConfigDict(from_attributes=True)


class FeasibilityResult(BaseModel):
    score: int = Field(..., ge=0, le=100)
    band: ScoreBand
    factors: list[FeasibilityFactor]


class ViabilityRiskDecision(BaseModel):
    """A forward-looking 'attendance at risk within N weeks' signal."""
    weeks_to_risk: int = Field(..., ge=0)
    confidence: RiskConfidence
    reasons: list[str]
    recommendation: Optional[str] = None

# --- 2. Persisted records (read side) ---

class FeasibilityRecord(BaseModel):
    student_id: UUID
    week_start: date
    feasibility_score: int
    score_band: ScoreBand
    factors: list[FeasibilityFactor] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class ConflictRecord(CalendarConflict):
    id: int
    student_id: UUID


class ViabilityRiskRecord(BaseModel):
    id: int
    student_id: UUID
    risk_type: str
    weeks_to_risk: int
    confidence: RiskConfidence
    reasons: list[str]
    recommendation: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

# --- 3. Analysis outcomes ---

class AnalyzeRequest(BaseModel):
    student_id: Optional[UUID] = None
    analyze_all: bool = False


class StudentAnalysisSuccess(BaseModel):
    status: Literal["analyzed"] = "analyzed"
    student_id: UUID
    week_start: date
    feasibility_score: int
    score_band: ScoreBand
    factors: list[FeasibilityFactor]
    conflicts: list[CalendarConflict]
    conflicts_count: int
    declining_trend: bool
    viability_risk: Optional[ViabilityRiskDecision] = None


class StudentAnalysisNoData(BaseModel):
    status: Literal["no_data"] = "no_data"
    student_id: UUID
    message: str = "No calendar data found"


class StudentAnalysisError(BaseModel):
    status: Literal["error"] = "error"
    student_id: UUID
    error: str


StudentAnalysisOutcome = Annotated[
    Union[StudentAnalysisSuccess, StudentAnalysisNoData, StudentAnalysisError],
    Field(discriminator='status')
]


class BatchAnalysisResult(BaseModel):
    results: list[StudentAnalysisOutcome]
    analyzed: int
    no_data: int
    failed: int
    message: str

# --- 4. Student detail view ---

class CalendarTotals(BaseModel):
    total_class_hours: float = 0.0
    total_mandatory_hours: float = 0.0
    total_work_hours: float = 0.0
    free_time_blocks: list[FreeTimeBlock] = Field(default_factory=list)


class StudentRiskDetail(BaseModel):
    student_id: UUID
    week_start: Optional[date] = None
    weekly_calendar: list[CalendarEvent] = Field(default_factory=list)
    calendar_summary: CalendarTotals
    feasibility: Optional[FeasibilityRecord] = None
    conflicts: list[ConflictRecord] = Field(default_factory=list)
    viability_risk: Optional[ViabilityRiskRecord] = None
