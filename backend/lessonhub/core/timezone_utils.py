# backend/lessonhub/core/timezone_utils.py
"""
Timezone handling for LessonHub.

Rules:
- All storage: UTC
- All comparisons: UTC
- Weekly availability and time-off dates: organisation local time
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

import pytz

from .config import settings


def get_local_timezone(tz_name: Optional[str] = None) -> pytz.BaseTzInfo:
    return pytz.timezone(tz_name or settings.local_timezone)


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_local(value: datetime, tz_name: Optional[str] = None) -> datetime:
    tz = get_local_timezone(tz_name)
    return ensure_utc(value).astimezone(tz)


def local_day_bounds(
    start_day: date, end_day: date, tz_name: Optional[str] = None
) -> Tuple[datetime, datetime]:
    """
    UTC bounds covering whole local days ``start_day`` through ``end_day`` inclusive.

    The end bound is the last microsecond of ``end_day``.
    """
    tz = get_local_timezone(tz_name)
    start_local = tz.localize(datetime.combine(start_day, time.min))
    end_local = tz.localize(datetime.combine(end_day + timedelta(days=1), time.min))
    return (
        start_local.astimezone(timezone.utc),
        end_local.astimezone(timezone.utc) - timedelta(microseconds=1),
    )


def local_today(tz_name: Optional[str] = None) -> date:
    return datetime.now(timezone.utc).astimezone(get_local_timezone(tz_name)).date()


def format_clock(value: datetime, tz_name: Optional[str] = None) -> str:
    """Render a timestamp as ``h:mm AM`` in local time."""
    local = to_local(value, tz_name)
    hour = local.hour % 12 or 12
    return f"{hour}:{local.minute:02d} {'AM' if local.hour < 12 else 'PM'}"


def format_short_date(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}"


def format_long_date(value: date) -> str:
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def local_to_utc(day: date, clock: time, tz_name: Optional[str] = None) -> datetime:
    """Interpret ``day`` + ``clock`` as local wall time and return it in UTC."""
    tz = get_local_timezone(tz_name)
    return tz.localize(datetime.combine(day, clock)).astimezone(timezone.utc)
