'''
API endpoints for triggering feasibility analysis and reading a student's risk view.
'''
from typing import Annotated, Any, Union
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, status

from ..models import feasibility as feasibility_models
from ..services.analysis_service import FeasibilityAnalysisService
from ..services.report_service import CalendarRiskReportService

AnalysisResponse = Union[
    feasibility_models.BatchAnalysisResult,
    feasibility_models.StudentAnalysisSuccess,
    feasibility_models.StudentAnalysisNoData,
    feasibility_models.StudentAnalysisError,
]


class FeasibilityAPI:
    """
    A class to encapsulate endpoints for timetable feasibility analysis.
    """
    def __init__(self):
        self.router = APIRouter(
            prefix="/feasibility",
            tags=["Feasibility"]
        )
        self._register_routes()

    def _register_routes(self):
        """Registers all the API routes for this class."""
        self.router.add_api_route(
            "/analyze",
            self.analyze,
            methods=["POST"],
            response_model=AnalysisResponse)
        self.router.add_api_route(
            "/students/{student_id}",
            self.get_student_detail,
            methods=["GET"],
            response_model=feasibility_models.StudentRiskDetail)

    async def analyze(
        self,
        analyze_request: feasibility_models.AnalyzeRequest,
        analysis_service: Annotated[FeasibilityAnalysisService, Depends(FeasibilityAnalysisService)]
    ) -> Any:
        """
        Analyzes one student (`student_id`) or every student with calendar
        data (`analyze_all`). Per-student failures are reported in the body.
        New risks are notified only after the results are committed.
        """
        if analyze_request.analyze_all:
            result = await analysis_service.analyze_all()
        elif analyze_request.student_id is not None:
            result = await analysis_service.analyze_student(analyze_request.student_id)
        else:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="student_id or analyze_all is required"
            )
        await analysis_service.commit_and_notify()
        return result

    async def get_student_detail(
        self,
        student_id: UUID,
        report_service: Annotated[CalendarRiskReportService, Depends(CalendarRiskReportService)]
    ) -> Any:
        """Latest calendar, feasibility, open conflicts and active risk for one student."""
        return await report_service.get_student_detail(student_id)

# Instantiate the class and export its router
feasibility_api = FeasibilityAPI()
router = feasibility_api.router
