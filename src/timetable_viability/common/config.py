'''
Holds all the configurations
'''
from pydantic import BaseModel
from pydantic_settings import BaseSettings


class FeasibilityThresholds(BaseModel):
    """
    Every tunable number used by the conflict detector, the feasibility scorer
    and the viability risk projector. Defaults are the production values.
    """
    # Scoring baseline
    BASELINE_SCORE: int = 100

    # Daily mandatory hours
    DAILY_MANDATORY_EXCESSIVE_HOURS: float = 8.0
    DAILY_MANDATORY_HIGH_HOURS: float = 6.0
    EXCESSIVE_DAILY_MANDATORY_PENALTY: int = -20
    HIGH_DAILY_MANDATORY_PENALTY: int = -10

    # Back-to-back sessions
    BACK_TO_BACK_GAP_MINUTES: float = 15.0
    MIN_CLUSTERED_GAPS: int = 3
    SESSION_CLUSTERING_PENALTY: int = -15
    UNREALISTIC_TRANSITION_MINUTES: float = 5.0

    # Class / work overlap
    CLASS_WORK_OVERLAP_PENALTY: int = -25

    # Weekly load (class + work)
    WEEKLY_LOAD_EXCESSIVE_HOURS: float = 50.0
    WEEKLY_LOAD_HIGH_HOURS: float = 40.0
    EXCESSIVE_WEEKLY_LOAD_PENALTY: int = -20
    HIGH_WEEKLY_LOAD_PENALTY: int = -10

    # Consecutive heavy days
    HEAVY_DAY_HOURS: float = 6.0
    MIN_CONSECUTIVE_HEAVY_DAYS: int = 3
    CONSECUTIVE_HEAVY_DAYS_PENALTY: int = -15

    # Bands
    FEASIBLE_MIN_SCORE: int = 85
    STRAINED_MIN_SCORE: int = 60

    # Viability risk
    RISK_REASON_MAX_IMPACT: int = -15
    MIN_HIGH_SEVERITY_CONFLICTS: int = 2

    # Free-time window (weekdays only)
    FREE_WINDOW_START: str = "09:00"
    FREE_WINDOW_END: str = "17:00"


class Settings(BaseSettings):
    """
    Manages application configuration using environment variables.
    """
    # Application Metadata
    APP_NAME: str = "Timetable Viability Backend"
    APP_VERSION: str = "0.1.0"
    APP_DESCRIPTION: str = "Timetable feasibility scoring and attendance viability risk engine."
    TEST_MODE: bool = False
    LOG_LEVEL: str = "INFO"

    # Database URL
    DATABASE_URL_PROD: str = "postgresql+psycopg://localhost/timetable_viability"
    DATABASE_URL_TEST: str = "sqlite+aiosqlite://"
    @property
    def database_url(self) -> str:
        """
        Dynamically returns the correct database URL based on the test_mode flag.
        """
        if self.TEST_MODE:
            return self.DATABASE_URL_TEST
        return self.DATABASE_URL_PROD

    # Local timezone used to derive weekday and time-of-day of events
    TIMEZONE: str = "UTC"

    BACKEND_CORS_ORIGINS: list[str] = []

    # External risk notification sink
    RISK_WEBHOOK_URL: str | None = None
    RISK_WEBHOOK_TIMEOUT_SECONDS: float = 10.0

    FEASIBILITY: FeasibilityThresholds = FeasibilityThresholds()

    class Config:
        env_file = ".env" # automatically loads the .env
        env_nested_delimiter = "__"
        extra = "ignore"

# Create a single, importable instance of the settings
settings = Settings()
