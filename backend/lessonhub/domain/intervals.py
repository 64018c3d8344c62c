"""Interval containment and overlap rules.

Two overlap policies live here on purpose and must stay separate:

- ``ranges_overlap`` is half-open: touching endpoints do not collide. Lesson and
  student double-booking checks use it.
- ``ranges_intersect_inclusive`` / ``dates_intersect_inclusive`` count shared
  endpoints as a collision. Time-off checks use them.
"""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Union

from ..core.enums import Weekday

TimeOfDay = Union[str, time]


def day_name(weekday_index: int) -> Weekday:
    """Map 0-6 (0 = Sunday) to the canonical weekday."""
    return Weekday.from_index(weekday_index)


def minutes_since_midnight(value: TimeOfDay) -> int:
    """Convert ``HH:MM`` / ``HH:MM:SS`` strings or ``time`` objects to minutes."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time of day: {value!r}")
    hours, minutes = int(parts[0]), int(parts[1])
    # 24:00 is the only valid time past 23:59 and marks the end of the day.
    if not (0 <= hours <= 23 and 0 <= minutes < 60) and (hours, minutes) != (24, 0):
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours * 60 + minutes


def fits_within_window(
    event_start: TimeOfDay,
    event_end: TimeOfDay,
    window_start: TimeOfDay,
    window_end: TimeOfDay,
) -> bool:
    """True iff the event lies entirely inside the window, both ends inclusive."""
    return minutes_since_midnight(event_start) >= minutes_since_midnight(
        window_start
    ) and minutes_since_midnight(event_end) <= minutes_since_midnight(window_end)


def ranges_overlap(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Half-open overlap: ``a_start < b_end and b_start < a_end``."""
    return a_start < b_end and b_start < a_end


def ranges_intersect_inclusive(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Closed-interval intersection: shared endpoints count."""
    return a_start <= b_end and b_start <= a_end


def dates_intersect_inclusive(
    a_start: date, a_end: date, b_start: date, b_end: date
) -> bool:
    """Closed intersection of two inclusive date ranges."""
    return a_start <= b_end and b_start <= a_end


def format_window(window_start: time, window_end: time) -> str:
    return f"{window_start.strftime('%H:%M')} - {window_end.strftime('%H:%M')}"
