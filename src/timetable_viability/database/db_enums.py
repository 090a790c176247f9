'''
Static enums shared by the ORM tables, the API models and the core engine.
'''
import enum


class ListableEnum(str, enum.Enum):
    """A custom Enum base class that can list all member names."""
    @classmethod
    def get_all_names(cls) -> list[str]:
        return [member.value for member in cls]


class EventCategory(ListableEnum):
    CLASS = "class"
    WORK = "work"


class AcademicEventType(ListableEnum):
    LECTURE = "lecture"
    SEMINAR = "seminar"
    LAB = "lab"


class WorkEventType(ListableEnum):
    WORK = "work"
    PERSONAL = "personal"


class ConflictType(ListableEnum):
    CLASS_WORK_OVERLAP = "class_work_overlap"
    UNREALISTIC_TRANSITION = "unrealistic_transition"
    EXCESSIVE_SESSIONS = "excessive_sessions"
    DAY_EXCEEDS_HOURS = "day_exceeds_hours"


class Severity(ListableEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ScoreBand(ListableEnum):
    FEASIBLE = "feasible"
    STRAINED = "strained"
    AT_RISK = "at_risk"


class RiskConfidence(ListableEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FactorKey(ListableEnum):
    EXCESSIVE_DAILY_MANDATORY = "excessive_daily_mandatory"
    HIGH_DAILY_MANDATORY = "high_daily_mandatory"
    SESSION_CLUSTERING = "session_clustering"
    CLASS_WORK_OVERLAP = "class_work_overlap"
    EXCESSIVE_WEEKLY_LOAD = "excessive_weekly_load"
    HIGH_WEEKLY_LOAD = "high_weekly_load"
    CONSECUTIVE_HEAVY_DAYS = "consecutive_heavy_days"


RISK_TYPE_ATTENDANCE_VIABILITY = "attendance_viability_risk"
