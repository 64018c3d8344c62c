"""Data access layer for LessonHub."""

from .availability_repository import AvailabilityRepository
from .base_repository import BaseRepository
from .conflict_checker_repository import ConflictCheckerRepository
from .factory import RepositoryFactory
from .lesson_repository import LessonRepository
from .lesson_status_repository import LessonStatusRepository
from .time_off_repository import TimeOffRepository
from .tutor_repository import TutorRepository

__all__ = [
    "AvailabilityRepository",
    "BaseRepository",
    "ConflictCheckerRepository",
    "LessonRepository",
    "LessonStatusRepository",
    "RepositoryFactory",
    "TimeOffRepository",
    "TutorRepository",
]
