'''
Reference time used to anchor "the current week".
'''
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from .config import settings
from .logger import log


def get_timezone(name: str | None = None) -> ZoneInfo:
    name = name or settings.TIMEZONE
    try:
        return ZoneInfo(name)
    except Exception:
        log.warning(f"Invalid timezone '{name}', defaulting to UTC.")
        return ZoneInfo("UTC")


def get_reference_time() -> datetime:
    """
    FastAPI dependency returning the current time in the configured timezone.
    Tests override it to pin the analysed week.
    """
    return datetime.now(get_timezone())


def iso_week_start(reference_time: datetime) -> date:
    """Monday of the ISO week containing `reference_time`."""
    return reference_time.date() - timedelta(days=reference_time.weekday())
