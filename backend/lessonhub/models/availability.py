# backend/lessonhub/models/availability.py
"""
Weekly availability model.

A tutor has zero or more open-hours windows per weekday. Windows on the same
day may overlap; nothing here enforces otherwise.
"""

import logging

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, String, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class TutorAvailability(Base):
    """Recurring weekly window during which a tutor can teach."""

    __tablename__ = "tutor_availability"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    tutor_id = Column(String(26), ForeignKey("tutors.id", ondelete="CASCADE"), nullable=False)
    # Always a core.enums.Weekday value
    day_of_week = Column(String(10), nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    tutor = relationship("Tutor", back_populates="availability_windows")

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="check_availability_window_order"),
        Index("idx_tutor_availability_tutor_day", "tutor_id", "day_of_week"),
    )

    @property
    def slot_label(self) -> str:
        return f"{self.start_time.strftime('%H:%M')} - {self.end_time.strftime('%H:%M')}"

    def __repr__(self) -> str:
        return f"<TutorAvailability {self.day_of_week} {self.slot_label}>"
