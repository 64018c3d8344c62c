# backend/lessonhub/models/lesson.py
"""
Lesson model for LessonHub.

Lessons carry absolute UTC start/end timestamps, a status and a type tag.
Demo lessons are ignored by every conflict check. The time-off resolver mutates
lessons in two ways only: reassigning ``tutor_id`` and setting ``status`` to
cancelled.
"""

import logging

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import LessonStatus, LessonType
from ..database import Base

logger = logging.getLogger(__name__)


class Lesson(Base):
    """A scheduled lesson between a tutor and zero or more students."""

    __tablename__ = "lessons"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    tutor_id = Column(String(26), ForeignKey("tutors.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    subject = Column(String(100), nullable=True)
    lesson_type = Column(String(20), nullable=False, default=LessonType.ORDINARY.value)
    status = Column(String(20), nullable=False, default=LessonStatus.SCHEDULED.value, index=True)

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)

    video_room_id = Column(String(255), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by_id = Column(String(64), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    tutor = relationship("Tutor", back_populates="lessons")
    lesson_students = relationship(
        "LessonStudent", back_populates="lesson", cascade="all, delete-orphan"
    )

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="check_lesson_time_order"),
        Index("idx_lessons_tutor_start", "tutor_id", "start_time"),
    )

    @property
    def students(self) -> list:
        return [ls.student for ls in self.lesson_students]

    def __repr__(self) -> str:
        return f"<Lesson {self.title} {self.start_time} ({self.status})>"


class LessonStudent(Base):
    """Enrolment of a student in a lesson."""

    __tablename__ = "lesson_students"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    lesson_id = Column(String(26), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)

    lesson = relationship("Lesson", back_populates="lesson_students")
    student = relationship("Student")

    __table_args__ = (
        UniqueConstraint("lesson_id", "student_id", name="unique_lesson_student"),
        Index("idx_lesson_students_student", "student_id"),
    )
