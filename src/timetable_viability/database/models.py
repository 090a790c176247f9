from typing import Optional

from sqlalchemy import BigInteger, Boolean, CheckConstraint, DateTime, Date, Double, Enum, Index, Integer, JSON, PrimaryKeyConstraint, Text, UniqueConstraint, Uuid, func, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
import datetime
import uuid

from .db_enums import ConflictType, Severity, ScoreBand, RiskConfidence, RISK_TYPE_ATTENDANCE_VIABILITY

# BIGINT identity on PostgreSQL, rowid alias on SQLite.
AutoIncrementId = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass



class AcademicEvents(Base):
    __tablename__ = 'academic_events'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='academic_events_pkey'),
        Index('idx_academic_events_student', 'student_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    # Loosely typed at the boundary: sync connectors write here directly.
    event_type: Mapped[str] = mapped_column(Text)
    start_time: Mapped[datetime.datetime] = mapped_column(DateTime(True))
    end_time: Mapped[datetime.datetime] = mapped_column(DateTime(True))
    mandatory: Mapped[bool] = mapped_column(Boolean, server_default=text('true'))
    title: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True), server_default=func.now())


class WorkEvents(Base):
    __tablename__ = 'work_events'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='work_events_pkey'),
        Index('idx_work_events_student', 'student_id')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    event_type: Mapped[str] = mapped_column(Text)
    start_time: Mapped[datetime.datetime] = mapped_column(DateTime(True))
    end_time: Mapped[datetime.datetime] = mapped_column(DateTime(True))
    title: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True), server_default=func.now())


class StudentCalendarSummaries(Base):
    __tablename__ = 'student_calendar_summaries'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='student_calendar_summaries_pkey'),
        UniqueConstraint('student_id', 'week_start', name='student_calendar_summaries_student_week_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    week_start: Mapped[datetime.date] = mapped_column(Date)
    total_class_hours: Mapped[float] = mapped_column(Double(53), server_default=text('0'))
    total_mandatory_hours: Mapped[float] = mapped_column(Double(53), server_default=text('0'))
    total_work_hours: Mapped[float] = mapped_column(Double(53), server_default=text('0'))
    weekly_calendar: Mapped[list] = mapped_column(JSON)
    free_time_blocks: Mapped[list] = mapped_column(JSON)
    updated_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True), server_default=func.now(), onupdate=func.now())


class TimetableFeasibility(Base):
    __tablename__ = 'timetable_feasibility'
    __table_args__ = (
        CheckConstraint('feasibility_score >= 0 AND feasibility_score <= 100', name='feasibility_score_range'),
        PrimaryKeyConstraint('id', name='timetable_feasibility_pkey'),
        UniqueConstraint('student_id', 'week_start', name='timetable_feasibility_student_week_key')
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    week_start: Mapped[datetime.date] = mapped_column(Date)
    feasibility_score: Mapped[int] = mapped_column(Integer)
    score_band: Mapped[str] = mapped_column(Enum(*ScoreBand.get_all_names(), name='score_band_enum'))
    factors: Mapped[list] = mapped_column(JSON)
    created_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True), server_default=func.now())
    updated_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True), server_default=func.now(), onupdate=func.now())


class CalendarConflicts(Base):
    __tablename__ = 'calendar_conflicts'
    __table_args__ = (
        PrimaryKeyConstraint('id', name='calendar_conflicts_pkey'),
        Index('idx_calendar_conflicts_student_resolved', 'student_id', 'resolved')
    )

    id: Mapped[int] = mapped_column(AutoIncrementId, primary_key=True, autoincrement=True)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    conflict_type: Mapped[str] = mapped_column(Enum(*ConflictType.get_all_names(), name='conflict_type_enum'))
    day: Mapped[str] = mapped_column(Text)
    severity: Mapped[str] = mapped_column(Enum(*Severity.get_all_names(), name='severity_enum'))
    details: Mapped[str] = mapped_column(Text)
    resolved: Mapped[bool] = mapped_column(Boolean, server_default=text('false'), default=False)
    created_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True), server_default=func.now())


class AttendanceViabilityRisks(Base):
    __tablename__ = 'attendance_viability_risks'
    __table_args__ = (
        CheckConstraint('weeks_to_risk >= 0', name='weeks_to_risk_non_negative'),
        PrimaryKeyConstraint('id', name='attendance_viability_risks_pkey'),
        Index('idx_viability_risks_student_active', 'student_id', 'active')
    )

    id: Mapped[int] = mapped_column(AutoIncrementId, primary_key=True, autoincrement=True)
    student_id: Mapped[uuid.UUID] = mapped_column(Uuid)
    risk_type: Mapped[str] = mapped_column(Text, default=RISK_TYPE_ATTENDANCE_VIABILITY)
    weeks_to_risk: Mapped[int] = mapped_column(Integer)
    confidence: Mapped[str] = mapped_column(Enum(*RiskConfidence.get_all_names(), name='risk_confidence_enum'))
    reasons: Mapped[list] = mapped_column(JSON)
    recommendation: Mapped[Optional[str]] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, server_default=text('true'), default=True)
    created_at: Mapped[Optional[datetime.datetime]] = mapped_column(DateTime(True), server_default=func.now())
