"""Time utilities for kickoff handling and local display."""
from datetime import datetime, timezone
from typing import Optional

import pytz

from liveticker.core.config import settings


def utcnow() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def to_local(dt: datetime, timezone_str: Optional[str] = None) -> datetime:
    """
    Convert a datetime to the display timezone.

    Args:
        dt: Datetime (naive values are taken as UTC)
        timezone_str: Target timezone (defaults to the configured one)

    Returns:
        Datetime in the target timezone
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    tz = pytz.timezone(timezone_str or settings.timezone)
    return dt.astimezone(tz)


def format_local_date(dt: datetime, timezone_str: Optional[str] = None, weekday: bool = False) -> str:
    """'Sat, 18.10.2025' style date in the display timezone."""
    local = to_local(dt, timezone_str)
    fmt = "%a, %d.%m.%Y" if weekday else "%d.%m.%Y"
    return local.strftime(fmt)


def format_local_time(dt: datetime, timezone_str: Optional[str] = None) -> str:
    """'19:30' in the display timezone."""
    return to_local(dt, timezone_str).strftime("%H:%M")


def seconds_until(dt: datetime, now: Optional[datetime] = None) -> float:
    """Seconds from now until dt (negative if dt has passed)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - (now or utcnow())).total_seconds()
