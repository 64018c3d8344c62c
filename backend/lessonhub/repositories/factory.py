# backend/lessonhub/repositories/factory.py
"""
Repository Factory for LessonHub

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .availability_repository import AvailabilityRepository
    from .conflict_checker_repository import ConflictCheckerRepository
    from .lesson_repository import LessonRepository
    from .lesson_status_repository import LessonStatusRepository
    from .time_off_repository import TimeOffRepository
    from .tutor_repository import TutorRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Services take repositories from here rather than constructing them, so tests
    can patch a single seam.
    """

    @staticmethod
    def create_availability_repository(db: Session) -> "AvailabilityRepository":
        """Create repository for weekly availability windows."""
        from .availability_repository import AvailabilityRepository

        return AvailabilityRepository(db)

    @staticmethod
    def create_conflict_checker_repository(db: Session) -> "ConflictCheckerRepository":
        """Create repository for conflict checking queries."""
        from .conflict_checker_repository import ConflictCheckerRepository

        return ConflictCheckerRepository(db)

    @staticmethod
    def create_lesson_repository(db: Session) -> "LessonRepository":
        from .lesson_repository import LessonRepository

        return LessonRepository(db)

    @staticmethod
    def create_lesson_status_repository(db: Session) -> "LessonStatusRepository":
        """Create repository for attendance/roster/homework batch reads."""
        from .lesson_status_repository import LessonStatusRepository

        return LessonStatusRepository(db)

    @staticmethod
    def create_time_off_repository(db: Session) -> "TimeOffRepository":
        from .time_off_repository import TimeOffRepository

        return TimeOffRepository(db)

    @staticmethod
    def create_tutor_repository(db: Session) -> "TutorRepository":
        """Create repository for tutor lookups."""
        from .tutor_repository import TutorRepository

        return TutorRepository(db)
