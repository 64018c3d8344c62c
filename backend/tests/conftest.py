# backend/tests/conftest.py
"""
Pytest configuration for LessonHub.

Every test runs against a fresh in-memory SQLite database. The environment is
set BEFORE any lessonhub import so that settings and the engine pick it up.
"""

import os

# CRITICAL: Set test configuration BEFORE any lessonhub imports!
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["IS_TESTING"] = "true"
os.environ["LOCAL_TIMEZONE"] = "Europe/London"
os.environ["LESSON_SPACE_ENABLED"] = "false"
os.environ.pop("REDIS_URL", None)

from datetime import date, datetime, time
from typing import Iterable, Optional

import pytest
from sqlalchemy.orm import Session

from lessonhub.core.enums import LessonStatus, LessonType, TimeOffStatus, Weekday
from lessonhub.database import Base, SessionLocal, engine
import lessonhub.models  # noqa: F401  registers every table on Base.metadata
from lessonhub.models import (
    Homework,
    Lesson,
    LessonAttendance,
    LessonStudent,
    Student,
    TimeOffRequest,
    Tutor,
    TutorAvailability,
    TutorSubject,
)


@pytest.fixture
def db() -> Iterable[Session]:
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


# ============================================================================
# Factories
# ============================================================================


class Factory:
    """Row builders; every helper commits so services see the data."""

    def __init__(self, db: Session):
        self.db = db

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def tutor(
        self,
        first_name: str = "Ada",
        last_name: str = "Lovelace",
        subjects: Iterable[str] = (),
        status: str = "active",
        email: Optional[str] = None,
    ) -> Tutor:
        tutor = self._save(
            Tutor(first_name=first_name, last_name=last_name, status=status, email=email)
        )
        for subject_id in subjects:
            self._save(TutorSubject(tutor_id=tutor.id, subject_id=subject_id))
        return tutor

    def window(
        self, tutor: Tutor, day: Weekday, start: time, end: time
    ) -> TutorAvailability:
        return self._save(
            TutorAvailability(
                tutor_id=tutor.id, day_of_week=day.value, start_time=start, end_time=end
            )
        )

    def student(self, first_name: str = "Sam", last_name: str = "Student") -> Student:
        return self._save(Student(first_name=first_name, last_name=last_name))

    def lesson(
        self,
        tutor: Tutor,
        start: datetime,
        end: datetime,
        title: str = "Maths",
        status: LessonStatus = LessonStatus.SCHEDULED,
        lesson_type: LessonType = LessonType.ORDINARY,
        students: Iterable[Student] = (),
        subject: Optional[str] = None,
    ) -> Lesson:
        lesson = self._save(
            Lesson(
                tutor_id=tutor.id,
                title=title,
                subject=subject,
                start_time=start,
                end_time=end,
                status=status.value,
                lesson_type=lesson_type.value,
            )
        )
        for student in students:
            self._save(LessonStudent(lesson_id=lesson.id, student_id=student.id))
        return lesson

    def time_off(
        self,
        tutor: Tutor,
        start_date: date,
        end_date: date,
        status: TimeOffStatus = TimeOffStatus.APPROVED,
        reason: str = "Holiday",
    ) -> TimeOffRequest:
        return self._save(
            TimeOffRequest(
                tutor_id=tutor.id,
                start_date=start_date,
                end_date=end_date,
                reason=reason,
                status=status.value,
            )
        )

    def attendance(self, lesson: Lesson, student: Student, status: str = "present"):
        return self._save(
            LessonAttendance(lesson_id=lesson.id, student_id=student.id, attendance_status=status)
        )

    def homework(self, lesson: Lesson) -> Homework:
        return self._save(Homework(lesson_id=lesson.id))


@pytest.fixture
def factory(db: Session) -> Factory:
    return Factory(db)
