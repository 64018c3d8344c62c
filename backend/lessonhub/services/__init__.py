"""Business logic layer for LessonHub."""

from .availability_check_service import AvailabilityCheckService
from .availability_window_service import AvailabilityWindowService
from .base import BaseService
from .cache_service import PersonalizedPathCache
from .lesson_status_service import LessonStatusService
from .time_off_conflict_service import TimeOffConflictService
from .time_off_service import TimeOffService
from .tutor_matching_service import TutorMatchingService

__all__ = [
    "AvailabilityCheckService",
    "AvailabilityWindowService",
    "BaseService",
    "LessonStatusService",
    "PersonalizedPathCache",
    "TimeOffConflictService",
    "TimeOffService",
    "TutorMatchingService",
]
