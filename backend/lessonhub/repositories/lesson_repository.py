# backend/lessonhub/repositories/lesson_repository.py
"""
Lesson Repository for LessonHub

Lesson reads for the time-off resolver, tutor matching and completed-lesson
reporting, plus the two mutations the resolver applies (tutor reassignment and
cancellation, both via ``update``).
"""

from datetime import datetime
import logging
from typing import List, Optional, Sequence, cast

from sqlalchemy.orm import Session, joinedload

from ..core.enums import ACTIVE_LESSON_STATUSES, LessonStatus
from ..core.exceptions import RepositoryException
from ..models.lesson import Lesson, LessonStudent
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class LessonRepository(BaseRepository[Lesson]):
    """Repository for lesson data access."""

    def __init__(self, db: Session):
        super().__init__(db, Lesson)
        self.logger = logging.getLogger(__name__)

    def get_scheduled_lessons_in_window(
        self, tutor_id: str, window_start: datetime, window_end: datetime
    ) -> List[Lesson]:
        """
        Scheduled lessons for a tutor touching ``[window_start, window_end]``.

        Boundaries are inclusive: a lesson ending exactly at ``window_start`` is
        included.
        """
        try:
            return cast(
                List[Lesson],
                self.db.query(Lesson)
                .options(joinedload(Lesson.lesson_students).joinedload(LessonStudent.student))
                .filter(
                    Lesson.tutor_id == tutor_id,
                    Lesson.status == LessonStatus.SCHEDULED.value,
                    Lesson.start_time <= window_end,
                    Lesson.end_time >= window_start,
                )
                .order_by(Lesson.start_time)
                .all(),
            )
        except Exception as e:
            self.logger.error(f"Error getting lessons in time-off window: {str(e)}")
            raise RepositoryException(f"Failed to get lessons in window: {str(e)}")

    def get_active_lessons_for_tutors(
        self, tutor_ids: Sequence[str], range_start: datetime, range_end: datetime
    ) -> List[Lesson]:
        """Scheduled or in-progress lessons for any of the tutors overlapping a UTC range."""
        if not tutor_ids:
            return []
        try:
            return cast(
                List[Lesson],
                self.db.query(Lesson)
                .filter(
                    Lesson.tutor_id.in_(list(tutor_ids)),
                    Lesson.status.in_([status.value for status in ACTIVE_LESSON_STATUSES]),
                    Lesson.start_time < range_end,
                    Lesson.end_time > range_start,
                )
                .order_by(Lesson.start_time)
                .all(),
            )
        except Exception as e:
            self.logger.error(f"Error getting lessons for tutors: {str(e)}")
            raise RepositoryException(f"Failed to get tutor lessons: {str(e)}")

    def find_lesson_ids(
        self,
        start_from: Optional[datetime] = None,
        end_to: Optional[datetime] = None,
        tutor_ids: Optional[Sequence[str]] = None,
        subjects: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """
        Ids of non-cancelled lessons matching optional filters.

        Args:
            start_from: Earliest start (UTC, inclusive)
            end_to: Latest end (UTC, inclusive)
            tutor_ids: Restrict to these tutors
            subjects: Restrict to these subjects

        Returns:
            Lesson ids ordered by start time, newest first
        """
        try:
            query = self.db.query(Lesson.id).filter(
                Lesson.status != LessonStatus.CANCELLED.value
            )
            if start_from is not None:
                query = query.filter(Lesson.start_time >= start_from)
            if end_to is not None:
                query = query.filter(Lesson.end_time <= end_to)
            if tutor_ids:
                query = query.filter(Lesson.tutor_id.in_(list(tutor_ids)))
            if subjects:
                query = query.filter(Lesson.subject.in_(list(subjects)))
            return [row[0] for row in query.order_by(Lesson.start_time.desc()).all()]
        except Exception as e:
            self.logger.error(f"Error filtering lessons: {str(e)}")
            raise RepositoryException(f"Failed to filter lessons: {str(e)}")

