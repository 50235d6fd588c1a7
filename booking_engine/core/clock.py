from datetime import datetime
from zoneinfo import ZoneInfo

from booking_engine.core.config import settings


def local_now() -> datetime:
    """Current naive wall-clock time in the configured booking timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).replace(tzinfo=None)
