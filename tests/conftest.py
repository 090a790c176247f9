'''
Pytest configuration for the FastAPI application.

This file sets up fixtures for:
1. Forcing the application into TEST_MODE (in-memory SQLite) before any code is imported.
2. Providing a fresh database and session for each test.
3. Providing an httpx AsyncClient bound to the ASGI app for endpoint testing.
4. Providing instances of all service classes, pre-injected with the test session,
   a pinned reference time and a mocked risk notifier.
'''
import os

# Force test mode before the settings object is created.
os.environ["TEST_MODE"] = "True"
os.environ["DATABASE_URL_TEST"] = "sqlite+aiosqlite://"
os.environ["TIMEZONE"] = "UTC"
os.environ.pop("RISK_WEBHOOK_URL", None)

import pytest
from typing import AsyncGenerator
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

# --- Constant Imports ----
from tests.constants import TEST_REFERENCE_TIME
from tests.database import factories

# --- Application Imports ---
from timetable_viability.main import app
from timetable_viability.common.config import settings
from timetable_viability.common.clock import get_reference_time
from timetable_viability.database import engine as db_engine
from timetable_viability.database.engine import get_db_session
from timetable_viability.services.calendar_service import CalendarService
from timetable_viability.services.analysis_service import FeasibilityAnalysisService, get_risk_notifier
from timetable_viability.services.report_service import CalendarRiskReportService
from timetable_viability.services.notification_service import RiskNotifier


@pytest.fixture(scope="session")
def anyio_backend():
    """
    Override the default 'anyio_backend' fixture.
    1. Forces the backend to 'asyncio'.
    2. Promotes the scope to 'session'.
    """
    return "asyncio"


@pytest.fixture(scope="function")
def reference_time() -> datetime:
    return TEST_REFERENCE_TIME


# --- 1. Database Fixtures ---

@pytest.fixture(scope="function")
async def database() -> AsyncGenerator[None, None]:
    """A brand new in-memory database with every table created."""
    assert settings.TEST_MODE is True, \
        "TEST_MODE was not set to True! Check your .env file or environment."

    db_engine.create_db_engine_and_session_factory()
    await db_engine.create_all_tables()
    yield
    await db_engine.dispose_db_engine()


@pytest.fixture(scope="function")
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """
    Provides a single session for service-level tests. Also binds the
    factory_boy factories to it.
    """
    session = db_engine.AsyncSessionLocal()
    factories.test_db_session = session
    try:
        yield session
    finally:
        factories.test_db_session = None
        await session.rollback()
        await session.close()


# --- 2. Collaborator Fixtures ---

@pytest.fixture(scope="function")
def mock_notifier() -> RiskNotifier:
    """Provides a mock RiskNotifier instance."""
    mock_service = MagicMock(spec=RiskNotifier)
    mock_service.notify_new_risk = AsyncMock(return_value=True)
    return mock_service


# --- 3. Service Fixtures ---

@pytest.fixture(scope="function")
def calendar_service(db_session: AsyncSession, reference_time: datetime) -> CalendarService:
    return CalendarService(db=db_session, reference_time=reference_time)

@pytest.fixture(scope="function")
def analysis_service(
    db_session: AsyncSession,
    calendar_service: CalendarService,
    mock_notifier: RiskNotifier
) -> FeasibilityAnalysisService:
    return FeasibilityAnalysisService(
        db=db_session,
        calendar_service=calendar_service,
        notifier=mock_notifier
    )

@pytest.fixture(scope="function")
def report_service(
    db_session: AsyncSession,
    calendar_service: CalendarService,
    reference_time: datetime
) -> CalendarRiskReportService:
    return CalendarRiskReportService(
        db=db_session,
        calendar_service=calendar_service,
        reference_time=reference_time
    )


# --- 4. API Client ---

@pytest.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    reference_time: datetime,
    mock_notifier: RiskNotifier
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Client for endpoint tests. Every request shares the test session, so data
    seeded by a test is visible to the app and vice versa.
    """
    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_reference_time] = lambda: reference_time
    app.dependency_overrides[get_risk_notifier] = lambda: mock_notifier

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client

    app.dependency_overrides.clear()
