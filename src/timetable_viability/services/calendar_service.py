'''
Calendar Service
'''
from datetime import datetime
from typing import Annotated, Any, Optional, Sequence
from uuid import UUID

from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database.engine import get_db_session
from ..database import models as db_models
from ..models import calendar as calendar_models
from ..core.calendar_aggregator import aggregate_weekly_calendar
from ..common.clock import get_reference_time
from ..common.config import settings
from ..common.logger import log


class CalendarService:
    """
    Service for ingesting academic and work/personal events and keeping each
    student's weekly calendar summary in step with them.
    """
    def __init__(
        self,
        db: Annotated[AsyncSession, Depends(get_db_session)],
        reference_time: Annotated[datetime, Depends(get_reference_time)]
    ):
        self.db = db
        self.reference_time = reference_time

    # --- Event Source ---

    async def get_source_events(self, student_id: UUID) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
        """
        Returns the student's (academic, work) events as plain mappings, in a
        stable order so repeated aggregation is deterministic.
        """
        academic_stmt = select(db_models.AcademicEvents).filter(
            db_models.AcademicEvents.student_id == student_id
        ).order_by(
            db_models.AcademicEvents.start_time,
            db_models.AcademicEvents.end_time,
            db_models.AcademicEvents.id
        )
        work_stmt = select(db_models.WorkEvents).filter(
            db_models.WorkEvents.student_id == student_id
        ).order_by(
            db_models.WorkEvents.start_time,
            db_models.WorkEvents.end_time,
            db_models.WorkEvents.id
        )

        academic_rows = (await self.db.execute(academic_stmt)).scalars().all()
        work_rows = (await self.db.execute(work_stmt)).scalars().all()

        academic = [
            {
                "event_type": row.event_type,
                "start_time": row.start_time,
                "end_time": row.end_time,
                "mandatory": row.mandatory,
                "title": row.title,
            }
            for row in academic_rows
        ]
        work = [
            {
                "event_type": row.event_type,
                "start_time": row.start_time,
                "end_time": row.end_time,
                "title": row.title,
            }
            for row in work_rows
        ]
        return academic, work

    async def add_academic_events(
        self,
        events: Sequence[calendar_models.AcademicEventCreate]
    ) -> calendar_models.EventsCreatedResponse:
        log.info(f"Inserting {len(events)} academic event(s).")
        self.db.add_all([
            db_models.AcademicEvents(
                student_id=event.student_id,
                event_type=event.event_type.value,
                start_time=event.start_time,
                end_time=event.end_time,
                mandatory=event.mandatory,
                title=event.title,
            )
            for event in events
        ])
        await self.db.flush()
        student_ids = await self._recalculate_for(event.student_id for event in events)
        return calendar_models.EventsCreatedResponse(
            created=len(events),
            student_ids=student_ids,
            message=f"{len(events)} academic event(s) created",
        )

    async def add_work_events(
        self,
        events: Sequence[calendar_models.WorkEventCreate]
    ) -> calendar_models.EventsCreatedResponse:
        log.info(f"Inserting {len(events)} work/personal event(s).")
        self.db.add_all([
            db_models.WorkEvents(
                student_id=event.student_id,
                event_type=event.event_type.value,
                start_time=event.start_time,
                end_time=event.end_time,
                title=event.title,
            )
            for event in events
        ])
        await self.db.flush()
        student_ids = await self._recalculate_for(event.student_id for event in events)
        return calendar_models.EventsCreatedResponse(
            created=len(events),
            student_ids=student_ids,
            message=f"{len(events)} work/personal event(s) created",
        )

    async def _recalculate_for(self, student_ids) -> list[UUID]:
        affected = list(dict.fromkeys(student_ids))
        for student_id in affected:
            await self.recalculate_calendar_summary(student_id)
        return affected

    # --- Weekly Summary ---

    async def recalculate_calendar_summary(
        self,
        student_id: UUID,
        source_events: Optional[tuple[list[dict[str, Any]], list[dict[str, Any]]]] = None
    ) -> calendar_models.WeeklyCalendarSummary:
        """
        Rebuilds the current week's summary from source events and upserts it
        on (student_id, week_start). Safe to re-run at any time.
        """
        academic, work = source_events if source_events is not None else await self.get_source_events(student_id)
        summary = aggregate_weekly_calendar(
            student_id,
            academic,
            work,
            reference_time=self.reference_time,
            thresholds=settings.FEASIBILITY,
        )

        stmt = select(db_models.StudentCalendarSummaries).filter(
            db_models.StudentCalendarSummaries.student_id == student_id,
            db_models.StudentCalendarSummaries.week_start == summary.week_start
        )
        row = (await self.db.execute(stmt)).scalars().first()
        if row is None:
            row = db_models.StudentCalendarSummaries(student_id=student_id, week_start=summary.week_start)
            self.db.add(row)

        row.total_class_hours = summary.total_class_hours
        row.total_mandatory_hours = summary.total_mandatory_hours
        row.total_work_hours = summary.total_work_hours
        row.weekly_calendar = [event.model_dump(mode="json") for event in summary.events]
        row.free_time_blocks = [block.model_dump(mode="json") for block in summary.free_time_blocks]
        await self.db.flush()

        log.info(
            f"Calendar summary for student {student_id} week {summary.week_start}: "
            f"{len(summary.events)} events, {summary.total_class_hours:.1f}h class, "
            f"{summary.total_work_hours:.1f}h work."
        )
        return summary

    async def get_latest_summary(self, student_id: UUID) -> Optional[calendar_models.WeeklyCalendarSummary]:
        stmt = select(db_models.StudentCalendarSummaries).filter(
            db_models.StudentCalendarSummaries.student_id == student_id
        ).order_by(db_models.StudentCalendarSummaries.week_start.desc()).limit(1)
        row = (await self.db.execute(stmt)).scalars().first()
        if row is None:
            return None
        return calendar_models.WeeklyCalendarSummary.model_validate(row)

    async def get_students_with_summaries(self) -> list[UUID]:
        """Distinct students that have at least one calendar summary."""
        stmt = select(db_models.StudentCalendarSummaries.student_id).distinct().order_by(
            db_models.StudentCalendarSummaries.student_id
        )
        return list((await self.db.execute(stmt)).scalars().all())
