# backend/lessonhub/models/attendance.py
"""
Attendance and homework rows.

Both feed the derived per-lesson status flags; neither stores a "completed" bit.
A missing attendance row means attendance has not been taken yet.
"""

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.sql import func
import ulid

from ..database import Base


class LessonAttendance(Base):
    __tablename__ = "lesson_attendance"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    lesson_id = Column(String(26), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    attendance_status = Column(String(20), nullable=False)
    recorded_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("lesson_id", "student_id", name="unique_lesson_attendance"),
        Index("idx_lesson_attendance_lesson", "lesson_id"),
    )


class Homework(Base):
    __tablename__ = "homework"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    lesson_id = Column(String(26), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False, default="Homework")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_homework_lesson", "lesson_id"),)
