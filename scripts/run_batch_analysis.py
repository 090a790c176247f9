'''
Runs the feasibility analysis outside the web app, e.g. from a nightly cron.

    python scripts/run_batch_analysis.py               # every student with calendar data
    python scripts/run_batch_analysis.py --student-id <uuid>
'''
import argparse
import asyncio
import sys
from uuid import UUID

from timetable_viability.common.clock import get_reference_time
from timetable_viability.common.logger import log
from timetable_viability.database import engine as db_engine
from timetable_viability.services.analysis_service import FeasibilityAnalysisService, get_risk_notifier
from timetable_viability.services.calendar_service import CalendarService


async def run(student_id: UUID | None, db_url: str | None, init_db: bool) -> int:
    db_engine.create_db_engine_and_session_factory(db_url)
    try:
        if init_db:
            await db_engine.create_all_tables()

        async with db_engine.AsyncSessionLocal() as session:
            calendar_service = CalendarService(db=session, reference_time=get_reference_time())
            service = FeasibilityAnalysisService(
                db=session,
                calendar_service=calendar_service,
                notifier=get_risk_notifier()
            )

            if student_id is not None:
                outcome = await service.analyze_student(student_id)
                await service.commit_and_notify()
                print(outcome.model_dump_json(indent=2))
                return 1 if outcome.status == "error" else 0

            batch = await service.analyze_all()
            await service.commit_and_notify()
            print(batch.model_dump_json(indent=2))
            for failure in (r for r in batch.results if r.status == "error"):
                log.error(f"Student {failure.student_id} failed: {failure.error}")
            print(f"\n{batch.message}: {batch.no_data} without data, {batch.failed} failed.")
            return 1 if batch.failed else 0
    finally:
        await db_engine.dispose_db_engine()


def main():
    parser = argparse.ArgumentParser(description="Run timetable feasibility analysis.")
    parser.add_argument("--student-id", type=UUID, help="Analyze a single student instead of the whole portfolio.")
    parser.add_argument("--db-url", help="Database URL (defaults to the configured one).")
    parser.add_argument("--init-db", action="store_true", help="Create missing tables before running.")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.student_id, args.db_url, args.init_db)))


if __name__ == "__main__":
    main()
