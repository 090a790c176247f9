'''
API endpoints for pushing calendar events and reading weekly summaries.
'''
from typing import Annotated, Any
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status

from ..models import calendar as calendar_models
from ..services.calendar_service import CalendarService


class CalendarAPI:
    """
    A class to encapsulate endpoints for the student event calendar.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/calendar",
            tags=["Calendar"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/academic-events",
            self.create_academic_events,
            methods=["POST"],
            status_code=status.HTTP_201_CREATED,
            response_model=calendar_models.EventsCreatedResponse)
        self.router.add_api_route(
            "/work-events",
            self.create_work_events,
            methods=["POST"],
            status_code=status.HTTP_201_CREATED,
            response_model=calendar_models.EventsCreatedResponse)
        self.router.add_api_route(
            "/summary/{student_id}",
            self.get_calendar_summary,
            methods=["GET"],
            response_model=calendar_models.WeeklyCalendarSummary)

    async def create_academic_events(
        self,
        payload: calendar_models.AcademicEventsPayload,
        calendar_service: Annotated[CalendarService, Depends(CalendarService)]
    ) -> Any:
        """
        Stores one or many academic events and recomputes the weekly summary
        of every affected student.
        """
        events = payload if isinstance(payload, list) else [payload]
        return await calendar_service.add_academic_events(events)

    async def create_work_events(
        self,
        payload: calendar_models.WorkEventsPayload,
        calendar_service: Annotated[CalendarService, Depends(CalendarService)]
    ) -> Any:
        """
        Stores one or many work/personal events and recomputes the weekly
        summary of every affected student.
        """
        events = payload if isinstance(payload, list) else [payload]
        return await calendar_service.add_work_events(events)

    async def get_calendar_summary(
        self,
        student_id: UUID,
        calendar_service: Annotated[CalendarService, Depends(CalendarService)]
    ) -> Any:
        """Returns the most recent weekly calendar summary of a student."""
        summary = await calendar_service.get_latest_summary(student_id)
        if summary is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No calendar summary found for this student.")
        return summary

# Instantiate the class and export its router
calendar_api = CalendarAPI()
router = calendar_api.router
