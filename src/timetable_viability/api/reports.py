'''
API endpoints for portfolio-wide calendar risk reporting.
'''
from typing import Annotated, Any
from fastapi import APIRouter, Depends

from ..models import reports as report_models
from ..services.report_service import CalendarRiskReportService


class CalendarRiskReportsAPI:
    """
    A class to encapsulate the read-only reporting endpoints.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/calendar-risk",
            tags=["Calendar Risk Reports"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route("/summary", self.get_summary, methods=["GET"], response_model=report_models.CalendarRiskSummary)
        self.router.add_api_route("/pilot-report", self.get_pilot_report, methods=["GET"], response_model=report_models.PilotReport)

    async def get_summary(
        self,
        report_service: Annotated[CalendarRiskReportService, Depends(CalendarRiskReportService)]
    ) -> Any:
        """Band counts, average score, open conflicts and active risks."""
        return await report_service.get_risk_summary()

    async def get_pilot_report(
        self,
        report_service: Annotated[CalendarRiskReportService, Depends(CalendarRiskReportService)]
    ) -> Any:
        """Pilot report with anonymized cases and the conflict breakdown."""
        return await report_service.get_pilot_report()

# Instantiate the class and export its router
reports_api = CalendarRiskReportsAPI()
router = reports_api.router
