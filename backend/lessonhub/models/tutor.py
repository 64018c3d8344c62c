# backend/lessonhub/models/tutor.py
"""
Tutor and student models.

Tutors own weekly availability windows, lessons and time-off requests.
Students are enrolled in lessons through ``lesson_students``.
"""

import logging

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import TutorStatus
from ..database import Base

logger = logging.getLogger(__name__)


class Tutor(Base):
    """A tutor who can be booked for lessons."""

    __tablename__ = "tutors"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=True, unique=True)
    status = Column(String(20), nullable=False, default=TutorStatus.ACTIVE.value, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    availability_windows = relationship(
        "TutorAvailability", back_populates="tutor", cascade="all, delete-orphan"
    )
    subjects = relationship("TutorSubject", back_populates="tutor", cascade="all, delete-orphan")
    lessons = relationship("Lesson", back_populates="tutor")
    time_off_requests = relationship(
        "TimeOffRequest", back_populates="tutor", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Tutor {self.full_name} ({self.status})>"


class TutorSubject(Base):
    """Subjects a tutor teaches."""

    __tablename__ = "tutor_subjects"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    tutor_id = Column(String(26), ForeignKey("tutors.id", ondelete="CASCADE"), nullable=False)
    subject_id = Column(String(64), nullable=False)

    tutor = relationship("Tutor", back_populates="subjects")

    __table_args__ = (
        UniqueConstraint("tutor_id", "subject_id", name="unique_tutor_subject"),
        Index("idx_tutor_subjects_subject", "subject_id"),
    )


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Student {self.full_name}>"
