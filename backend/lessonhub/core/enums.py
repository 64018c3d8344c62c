# backend/lessonhub/core/enums.py
"""
Core enums for the LessonHub platform.

Every producer and consumer of a day-of-week value imports ``Weekday`` from here:
availability windows are written with it and conflict lookups read with it.
"""

from datetime import date, datetime
from enum import Enum
from typing import Union


class Weekday(str, Enum):
    """Canonical weekday names used as the day-of-week key."""

    SUNDAY = "sunday"
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"

    @classmethod
    def from_index(cls, index: int) -> "Weekday":
        """Map 0-6 (0 = Sunday) to a weekday."""
        if not 0 <= index <= 6:
            raise ValueError(f"Weekday index out of range: {index}")
        return _ORDER[index]

    @classmethod
    def for_datetime(cls, value: Union[date, datetime]) -> "Weekday":
        # date.weekday() is Monday=0; shift so Sunday=0.
        return cls.from_index((value.weekday() + 1) % 7)

    @property
    def position(self) -> int:
        return _ORDER.index(self)

    @property
    def label(self) -> str:
        return self.value.capitalize()


_ORDER = (
    Weekday.SUNDAY,
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
)


class TutorStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class LessonStatus(str, Enum):
    """Lesson lifecycle statuses."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that occupy a tutor's or student's calendar.
ACTIVE_LESSON_STATUSES = (LessonStatus.SCHEDULED, LessonStatus.IN_PROGRESS)


class LessonType(str, Enum):
    """Lesson types. Demo lessons never take part in conflict checks."""

    ORDINARY = "ordinary"
    TRIAL = "trial"
    DEMO = "demo"


class TimeOffStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    EXCUSED = "excused"


class ConflictType(str, Enum):
    TUTOR_AVAILABILITY = "tutor_availability"
    LESSON_CONFLICT = "lesson_conflict"
    TIME_OFF = "time_off"
    STUDENT_CONFLICT = "student_conflict"


# Conflicts that a different tutor could fix; student double-bookings are excluded.
TUTOR_SPECIFIC_CONFLICTS = frozenset(
    {ConflictType.TUTOR_AVAILABILITY, ConflictType.LESSON_CONFLICT, ConflictType.TIME_OFF}
)


class ResolutionAction(str, Enum):
    REASSIGN = "reassign"
    RESCHEDULE = "reschedule"
    CANCEL = "cancel"


class ResolutionOutcome(str, Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    NOT_IMPLEMENTED = "not_implemented"


class TutorAvailabilityState(str, Enum):
    """Classification used when matching tutors for a trial booking."""

    AVAILABLE = "available"
    BUSY = "busy"
    TIME_OFF = "time_off"
    NO_AVAILABILITY = "no_availability"
