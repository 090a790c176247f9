'''
Feasibility Analysis Service
'''
import asyncio
import weakref
from datetime import date
from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..models import feasibility as feasibility_models
from ..core.conflicts import detect_conflicts
from ..core.feasibility import score_feasibility
from ..core.viability import is_declining, project_viability_risk
from ..common.config import settings
from ..common.exceptions import NoCalendarDataError
from ..common.logger import log
from .calendar_service import CalendarService
from .notification_service import RiskNotifier

# One analysis pass at a time per student within this process.
# An entry lives only while some task holds or waits on its lock.
_student_locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = weakref.WeakValueDictionary()

HISTORY_WINDOW = 3


def _lock_for(student_id: UUID) -> asyncio.Lock:
    lock = _student_locks.get(student_id)
    if lock is None:
        lock = asyncio.Lock()
        _student_locks[student_id] = lock
    return lock


def get_risk_notifier() -> RiskNotifier:
    return RiskNotifier()


class FeasibilityAnalysisService:
    """
    Runs the per-student pipeline: recompute the weekly summary, detect
    conflicts, score, persist, then project the attendance viability risk.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        calendar_service: Annotated[CalendarService, Depends(CalendarService)],
        notifier: Annotated[RiskNotifier, Depends(get_risk_notifier)]
    ):
        self.db = db
        self.calendar_service = calendar_service
        self.notifier = notifier
        self.thresholds = settings.FEASIBILITY
        # Risks raised in this session, sent once the session commits.
        self._pending_notifications: list[tuple[UUID, feasibility_models.ViabilityRiskDecision]] = []

    # --- Public Entry Points ---

    async def analyze_student(self, student_id: UUID) -> feasibility_models.StudentAnalysisOutcome:
        """
        Analyzes one student. Never raises: missing data and failures come
        back as tagged outcomes naming the student.
        """
        log.info(f"Starting feasibility analysis for student {student_id}.")
        try:
            async with _lock_for(student_id):
                # Savepoint: a failure leaves this student's previous artifacts untouched.
                async with self.db.begin_nested():
                    outcome, decision = await self._run_pipeline(student_id)
                if decision is not None:
                    self._pending_notifications.append((student_id, decision))
            return outcome
        except NoCalendarDataError:
            log.warning(f"No calendar data for student {student_id}; nothing written.")
            return feasibility_models.StudentAnalysisNoData(student_id=student_id)
        except Exception as e:
            log.error(f"Feasibility analysis failed for student {student_id}: {e}", exc_info=True)
            return feasibility_models.StudentAnalysisError(student_id=student_id, error=str(e))

    async def analyze_all(self) -> feasibility_models.BatchAnalysisResult:
        """
        Analyzes every student that has at least one calendar summary, one by
        one. A failing student is recorded and the batch moves on.
        """
        student_ids = await self.calendar_service.get_students_with_summaries()
        log.info(f"Batch feasibility analysis over {len(student_ids)} student(s).")

        results = []
        for student_id in student_ids:
            results.append(await self.analyze_student(student_id))

        analyzed = sum(1 for r in results if r.status == "analyzed")
        no_data = sum(1 for r in results if r.status == "no_data")
        failed = sum(1 for r in results if r.status == "error")
        if failed:
            log.warning(f"Batch analysis finished with {failed} failure(s) out of {len(results)}.")

        return feasibility_models.BatchAnalysisResult(
            results=results,
            analyzed=analyzed,
            no_data=no_data,
            failed=failed,
            message=f"Analyzed {analyzed} of {len(results)} student(s)",
        )

    async def commit_and_notify(self) -> int:
        """
        Commits the session, then notifies every risk raised since the last
        call. Nothing is sent if the commit fails. Returns how many
        notifications were delivered.
        """
        pending, self._pending_notifications = self._pending_notifications, []
        await self.db.commit()

        delivered = 0
        for student_id, decision in pending:
            if await self.notifier.notify_new_risk(student_id, decision):
                delivered += 1
        if pending:
            log.info(f"Delivered {delivered} of {len(pending)} risk notification(s).")
        return delivered

    # --- Pipeline ---

    async def _run_pipeline(
        self,
        student_id: UUID
    ) -> tuple[feasibility_models.StudentAnalysisSuccess, Optional[feasibility_models.ViabilityRiskDecision]]:
        academic, work = await self.calendar_service.get_source_events(student_id)
        if not academic and not work and await self.calendar_service.get_latest_summary(student_id) is None:
            raise NoCalendarDataError(student_id)

        summary = await self.calendar_service.recalculate_calendar_summary(student_id, (academic, work))
        conflicts = detect_conflicts(summary, self.thresholds)
        result = score_feasibility(summary, self.thresholds)
        log.info(f"Student {student_id}: score {result.score} ({result.band.value}), {len(conflicts)} conflict(s).")

        await self._upsert_feasibility(student_id, summary.week_start, result)
        await self._replace_unresolved_conflicts(student_id, conflicts)

        recent_scores = await self._get_recent_scores(student_id)
        decision = project_viability_risk(result.band, result.factors, conflicts, recent_scores, self.thresholds)

        await self._deactivate_active_risks(student_id)
        if decision is not None:
            await self._insert_risk(student_id, decision)
            log.info(f"Viability risk raised for student {student_id}: {decision.weeks_to_risk} week(s), {decision.confidence.value} confidence.")

        outcome = feasibility_models.StudentAnalysisSuccess(
            student_id=student_id,
            week_start=summary.week_start,
            feasibility_score=result.score,
            score_band=result.band,
            factors=result.factors,
            conflicts=conflicts,
            conflicts_count=len(conflicts),
            declining_trend=is_declining(recent_scores),
            viability_risk=decision,
        )
        return outcome, decision

    async def _upsert_feasibility(
        self,
        student_id: UUID,
        week_start: date,
        result: feasibility_models.FeasibilityResult
    ) -> db_models.TimetableFeasibility:
        stmt = select(db_models.TimetableFeasibility).filter(
            db_models.TimetableFeasibility.student_id == student_id,
            db_models.TimetableFeasibility.week_start == week_start
        )
        row = (await self.db.execute(stmt)).scalars().first()
        if row is None:
            row = db_models.TimetableFeasibility(student_id=student_id, week_start=week_start)
            self.db.add(row)

        row.feasibility_score = result.score
        row.score_band = result.band.value
        row.factors = [factor.model_dump(mode="json") for factor in result.factors]
        await self.db.flush()
        return row

    async def _replace_unresolved_conflicts(
        self,
        student_id: UUID,
        conflicts: list[feasibility_models.CalendarConflict]
    ):
        """Conflicts are a snapshot: unresolved ones are dropped and rewritten, resolved ones kept."""
        await self.db.execute(
            delete(db_models.CalendarConflicts).where(
                db_models.CalendarConflicts.student_id == student_id,
                db_models.CalendarConflicts.resolved == False  # noqa: E712
            )
        )
        self.db.add_all([
            db_models.CalendarConflicts(
                student_id=student_id,
                conflict_type=conflict.conflict_type.value,
                day=conflict.day,
                severity=conflict.severity.value,
                details=conflict.details,
                resolved=False,
            )
            for conflict in conflicts
        ])
        await self.db.flush()

    async def _get_recent_scores(self, student_id: UUID) -> list[int]:
        """Up to the last three weekly scores, most recent week first."""
        stmt = select(db_models.TimetableFeasibility.feasibility_score).filter(
            db_models.TimetableFeasibility.student_id == student_id
        ).order_by(db_models.TimetableFeasibility.week_start.desc()).limit(HISTORY_WINDOW)
        return list((await self.db.execute(stmt)).scalars().all())

    async def _deactivate_active_risks(self, student_id: UUID):
        await self.db.execute(
            update(db_models.AttendanceViabilityRisks).where(
                db_models.AttendanceViabilityRisks.student_id == student_id,
                db_models.AttendanceViabilityRisks.active == True  # noqa: E712
            ).values(active=False)
        )

    async def _insert_risk(
        self,
        student_id: UUID,
        decision: feasibility_models.ViabilityRiskDecision
    ) -> db_models.AttendanceViabilityRisks:
        row = db_models.AttendanceViabilityRisks(
            student_id=student_id,
            weeks_to_risk=decision.weeks_to_risk,
            confidence=decision.confidence.value,
            reasons=list(decision.reasons),
            recommendation=decision.recommendation,
            active=True,
        )
        self.db.add(row)
        await self.db.flush()
        return row
