# backend/lessonhub/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for LessonHub

Data access for the four booking conflict checks. Every query here narrows
candidates in SQL; the service applies the exact interval predicate afterwards.

Demo lessons never take part in conflict checks, and only scheduled or
in-progress lessons occupy a calendar.
"""

from datetime import date, datetime
import logging
from typing import List, Optional, Sequence, cast

from sqlalchemy.orm import Session, joinedload

from ..core.enums import ACTIVE_LESSON_STATUSES, LessonType, TimeOffStatus
from ..core.exceptions import RepositoryException
from ..models.lesson import Lesson, LessonStudent
from ..models.time_off import TimeOffRequest
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

_ACTIVE_STATUS_VALUES = [status.value for status in ACTIVE_LESSON_STATUSES]


class ConflictCheckerRepository(BaseRepository[Lesson]):
    """Repository for conflict checking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Lesson)
        self.logger = logging.getLogger(__name__)

    # Lesson Conflict Queries

    def get_overlapping_tutor_lessons(
        self,
        tutor_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_lesson_id: Optional[str] = None,
    ) -> List[Lesson]:
        """
        Get a tutor's active, non-demo lessons overlapping a UTC range.

        Args:
            tutor_id: The tutor to check
            start_time: Requested start (UTC)
            end_time: Requested end (UTC)
            exclude_lesson_id: Lesson being edited, left out of the results

        Returns:
            Lessons ordered by start time
        """
        try:
            query = self.db.query(Lesson).filter(
                Lesson.tutor_id == tutor_id,
                Lesson.status.in_(_ACTIVE_STATUS_VALUES),
                Lesson.lesson_type != LessonType.DEMO.value,
                Lesson.start_time < end_time,
                Lesson.end_time > start_time,
            )
            if exclude_lesson_id:
                query = query.filter(Lesson.id != exclude_lesson_id)

            return cast(List[Lesson], query.order_by(Lesson.start_time).all())

        except Exception as e:
            self.logger.error(f"Error getting lessons for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflicting lessons: {str(e)}")

    def get_overlapping_student_lessons(
        self,
        student_ids: Sequence[int],
        start_time: datetime,
        end_time: datetime,
        exclude_lesson_id: Optional[str] = None,
    ) -> List[Lesson]:
        """
        Get active, non-demo lessons in a UTC range that enrol any of the students.

        The roster and student names are eager loaded so callers can name the
        affected students without further queries.
        """
        if not student_ids:
            return []
        try:
            enrolled = self.db.query(LessonStudent.lesson_id).filter(
                LessonStudent.student_id.in_(list(student_ids))
            )
            query = (
                self.db.query(Lesson)
                .options(joinedload(Lesson.lesson_students).joinedload(LessonStudent.student))
                .filter(
                    Lesson.id.in_(enrolled),
                    Lesson.status.in_(_ACTIVE_STATUS_VALUES),
                    Lesson.lesson_type != LessonType.DEMO.value,
                    Lesson.start_time < end_time,
                    Lesson.end_time > start_time,
                )
            )
            if exclude_lesson_id:
                query = query.filter(Lesson.id != exclude_lesson_id)

            return cast(List[Lesson], query.order_by(Lesson.start_time).all())

        except Exception as e:
            self.logger.error(f"Error getting student lessons for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get student conflicts: {str(e)}")

    # Time-off Queries

    def get_approved_time_off(
        self, tutor_id: str, start_date: date, end_date: date
    ) -> List[TimeOffRequest]:
        """
        Get approved time off whose inclusive date range touches ``[start_date, end_date]``.

        Args:
            tutor_id: The tutor ID
            start_date: First local date of the request
            end_date: Last local date of the request

        Returns:
            Approved requests ordered by start date
        """
        try:
            return cast(
                List[TimeOffRequest],
                self.db.query(TimeOffRequest)
                .filter(
                    TimeOffRequest.tutor_id == tutor_id,
                    TimeOffRequest.status == TimeOffStatus.APPROVED.value,
                    TimeOffRequest.start_date <= end_date,
                    TimeOffRequest.end_date >= start_date,
                )
                .order_by(TimeOffRequest.start_date)
                .all(),
            )

        except Exception as e:
            self.logger.error(f"Error getting time off for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get time off: {str(e)}")
