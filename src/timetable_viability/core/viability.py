'''
Forward-looking attendance viability risk.

Combines the current band, the high-severity conflicts and the score trend
over the last three weeks into an optional "at risk within N weeks" signal.
'''
from typing import Optional, Sequence

from ..common.config import FeasibilityThresholds
from ..database.db_enums import ConflictType, Severity, ScoreBand, RiskConfidence
from ..models.feasibility import CalendarConflict, FeasibilityFactor, ViabilityRiskDecision

REASON_BELOW_THRESHOLD = "Timetable feasibility score below sustainable threshold"
REASON_DECLINING = "Feasibility score declining week-on-week"
REASON_HIGH_SEVERITY = "Multiple high-severity conflicts detected"
REASON_WORK_CLASS_CONFLICT = "Work schedule conflicts with mandatory classes"

RECOMMENDATION_URGENT = (
    "Student workload may become unsustainable within 1 week. "
    "Early review of timetable flexibility recommended."
)
RECOMMENDATION_WORK_CLASS = (
    "Consider proactive check-in before attendance breach. "
    "Work-class conflicts need resolution."
)
RECOMMENDATION_MONITOR = (
    "Student workload may become unsustainable within 2-3 weeks. Monitor closely."
)


def is_declining(recent_scores: Sequence[int]) -> bool:
    """
    `recent_scores` holds up to three weekly scores, most recent first.
    Two points must go down; three points must go down monotonically.
    """
    if len(recent_scores) < 2:
        return False
    scores = list(recent_scores[:3])
    return scores[0] < scores[1] and (len(scores) < 3 or scores[1] < scores[2])


def project_viability_risk(
    band: ScoreBand,
    factors: Sequence[FeasibilityFactor],
    conflicts: Sequence[CalendarConflict],
    recent_scores: Sequence[int],
    thresholds: FeasibilityThresholds | None = None
) -> Optional[ViabilityRiskDecision]:
    """
    Returns the risk to record for this pass, or None when no risk applies.
    """
    thresholds = thresholds or FeasibilityThresholds()

    reasons: list[str] = []
    weeks_to_risk = 0
    confidence = RiskConfidence.LOW
    should_create = False

    if band == ScoreBand.AT_RISK:
        should_create = True
        weeks_to_risk = 1
        confidence = RiskConfidence.HIGH
        reasons.append(REASON_BELOW_THRESHOLD)
    elif band == ScoreBand.STRAINED:
        if is_declining(recent_scores):
            should_create = True
            weeks_to_risk = 2
            confidence = RiskConfidence.MEDIUM
            reasons.append(REASON_DECLINING)
        high_severity = [c for c in conflicts if c.severity == Severity.HIGH]
        if len(high_severity) >= thresholds.MIN_HIGH_SEVERITY_CONFLICTS:
            should_create = True
            weeks_to_risk = 2
            confidence = RiskConfidence.MEDIUM
            reasons.append(REASON_HIGH_SEVERITY)

    if not should_create:
        return None

    reasons.extend(f.description for f in factors if f.impact <= thresholds.RISK_REASON_MAX_IMPACT)

    has_work_class_conflict = any(c.conflict_type == ConflictType.CLASS_WORK_OVERLAP for c in conflicts)
    if has_work_class_conflict:
        reasons.append(REASON_WORK_CLASS_CONFLICT)

    if band == ScoreBand.AT_RISK:
        recommendation = RECOMMENDATION_URGENT
    elif has_work_class_conflict:
        recommendation = RECOMMENDATION_WORK_CLASS
    else:
        recommendation = RECOMMENDATION_MONITOR

    return ViabilityRiskDecision(
        weeks_to_risk=weeks_to_risk,
        confidence=confidence,
        reasons=reasons,
        recommendation=recommendation,
    )
