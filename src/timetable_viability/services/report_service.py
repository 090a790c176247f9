'''
Calendar Risk Report Service
'''
from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..models import feasibility as feasibility_models
from ..models import reports as report_models
from ..core.rollup import build_risk_summary, build_pilot_report
from ..common.clock import get_reference_time
from ..common.logger import log
from .calendar_service import CalendarService


class CalendarRiskReportService:
    """
    Read-only views over the persisted feasibility, conflict and risk records.
    Never writes back into the analysis artifacts.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        calendar_service: Annotated[CalendarService, Depends(CalendarService)],
        reference_time: Annotated[datetime, Depends(get_reference_time)]
    ):
        self.db = db
        self.calendar_service = calendar_service
        self.reference_time = reference_time

    # --- Fetch Helpers ---

    async def _get_feasibility_records(self) -> list[feasibility_models.FeasibilityRecord]:
        stmt = select(db_models.TimetableFeasibility).order_by(
            db_models.TimetableFeasibility.week_start.desc(),
            db_models.TimetableFeasibility.created_at.desc()
        )
        rows = (await self.db.execute(stmt)).scalars().all()
        return [feasibility_models.FeasibilityRecord.model_validate(row) for row in rows]

    async def _get_conflict_records(self, unresolved_only: bool) -> list[feasibility_models.ConflictRecord]:
        stmt = select(db_models.CalendarConflicts).order_by(db_models.CalendarConflicts.id)
        if unresolved_only:
            stmt = stmt.filter(db_models.CalendarConflicts.resolved == False)  # noqa: E712
        rows = (await self.db.execute(stmt)).scalars().all()
        return [feasibility_models.ConflictRecord.model_validate(row) for row in rows]

    async def _get_active_risks(self) -> list[feasibility_models.ViabilityRiskRecord]:
        stmt = select(db_models.AttendanceViabilityRisks).filter(
            db_models.AttendanceViabilityRisks.active == True  # noqa: E712
        ).order_by(db_models.AttendanceViabilityRisks.id)
        rows = (await self.db.execute(stmt)).scalars().all()
        return [feasibility_models.ViabilityRiskRecord.model_validate(row) for row in rows]

    # --- API Methods ---

    async def get_risk_summary(self) -> report_models.CalendarRiskSummary:
        log.info("Building calendar risk summary.")
        return build_risk_summary(
            await self._get_feasibility_records(),
            await self._get_active_risks(),
            await self._get_conflict_records(unresolved_only=True),
        )

    async def get_pilot_report(self) -> report_models.PilotReport:
        log.info("Building calendar pilot report.")
        return build_pilot_report(
            await self._get_feasibility_records(),
            await self._get_conflict_records(unresolved_only=False),
            await self._get_active_risks(),
            generated_at=self.reference_time,
        )

    async def get_student_detail(self, student_id: UUID) -> feasibility_models.StudentRiskDetail:
        """
        Latest summary, latest feasibility, unresolved conflicts and the active
        viability risk for one student.
        """
        log.info(f"Fetching calendar risk detail for student {student_id}.")
        summary = await self.calendar_service.get_latest_summary(student_id)

        feasibility_stmt = select(db_models.TimetableFeasibility).filter(
            db_models.TimetableFeasibility.student_id == student_id
        ).order_by(db_models.TimetableFeasibility.week_start.desc()).limit(1)
        feasibility_row = (await self.db.execute(feasibility_stmt)).scalars().first()

        if summary is None and feasibility_row is None:
            log.warning(f"No calendar data found for student {student_id}.")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No calendar data found for this student.")

        conflicts_stmt = select(db_models.CalendarConflicts).filter(
            db_models.CalendarConflicts.student_id == student_id,
            db_models.CalendarConflicts.resolved == False  # noqa: E712
        ).order_by(db_models.CalendarConflicts.id)
        conflict_rows = (await self.db.execute(conflicts_stmt)).scalars().all()

        risk_stmt = select(db_models.AttendanceViabilityRisks).filter(
            db_models.AttendanceViabilityRisks.student_id == student_id,
            db_models.AttendanceViabilityRisks.active == True  # noqa: E712
        ).order_by(db_models.AttendanceViabilityRisks.id.desc()).limit(1)
        risk_row = (await self.db.execute(risk_stmt)).scalars().first()

        totals = feasibility_models.CalendarTotals()
        if summary is not None:
            totals = feasibility_models.CalendarTotals(
                total_class_hours=summary.total_class_hours,
                total_mandatory_hours=summary.total_mandatory_hours,
                total_work_hours=summary.total_work_hours,
                free_time_blocks=summary.free_time_blocks,
            )

        return feasibility_models.StudentRiskDetail(
            student_id=student_id,
            week_start=summary.week_start if summary else None,
            weekly_calendar=summary.events if summary else [],
            calendar_summary=totals,
            feasibility=feasibility_models.FeasibilityRecord.model_validate(feasibility_row) if feasibility_row else None,
            conflicts=[feasibility_models.ConflictRecord.model_validate(row) for row in conflict_rows],
            viability_risk=feasibility_models.ViabilityRiskRecord.model_validate(risk_row) if risk_row else None,
        )
