# backend/lessonhub/repositories/lesson_status_repository.py
"""
Lesson Status Repository for LessonHub

Row fetches behind the batched status aggregator. Each method takes one batch
of lesson ids and returns plain tuples; the service derives the flags.
"""

import logging
from typing import List, Sequence, Tuple

from sqlalchemy.orm import Session

from ..models.attendance import Homework, LessonAttendance
from ..models.lesson import LessonStudent
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

AttendanceRow = Tuple[str, int, str]
RosterRow = Tuple[str, int]


class LessonStatusRepository(BaseRepository[LessonAttendance]):
    """Repository for attendance, roster and homework rows."""

    def __init__(self, db: Session):
        super().__init__(db, LessonAttendance)
        self.logger = logging.getLogger(__name__)

    def get_attendance_rows(self, lesson_ids: Sequence[str]) -> List[AttendanceRow]:
        """(lesson_id, student_id, attendance_status) for every recorded attendance."""
        if not lesson_ids:
            return []
        rows = self._execute_query(
            self.db.query(
                LessonAttendance.lesson_id,
                LessonAttendance.student_id,
                LessonAttendance.attendance_status,
            ).filter(LessonAttendance.lesson_id.in_(list(lesson_ids)))
        )
        return [(row[0], row[1], row[2]) for row in rows]

    def get_roster_rows(self, lesson_ids: Sequence[str]) -> List[RosterRow]:
        """(lesson_id, student_id) for every enrolment."""
        if not lesson_ids:
            return []
        rows = self._execute_query(
            self.db.query(LessonStudent.lesson_id, LessonStudent.student_id).filter(
                LessonStudent.lesson_id.in_(list(lesson_ids))
            )
        )
        return [(row[0], row[1]) for row in rows]

    def get_homework_lesson_ids(self, lesson_ids: Sequence[str]) -> List[str]:
        if not lesson_ids:
            return []
        rows = self._execute_query(
            self.db.query(Homework.lesson_id)
            .filter(Homework.lesson_id.in_(list(lesson_ids)))
            .distinct()
        )
        return [row[0] for row in rows]

