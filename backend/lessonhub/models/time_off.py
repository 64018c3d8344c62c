# backend/lessonhub/models/time_off.py
"""Tutor time-off requests. Only approved requests block scheduling."""

import logging

from sqlalchemy import CheckConstraint, Column, Date, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.enums import TimeOffStatus
from ..database import Base

logger = logging.getLogger(__name__)


class TimeOffRequest(Base):
    """Inclusive date range a tutor asks to be away."""

    __tablename__ = "time_off_requests"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    tutor_id = Column(String(26), ForeignKey("tutors.id", ondelete="CASCADE"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default=TimeOffStatus.PENDING.value, index=True)

    admin_notes = Column(Text, nullable=True)
    reviewed_by = Column(String(64), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    tutor = relationship("Tutor", back_populates="time_off_requests")

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="check_time_off_date_order"),
        Index("idx_time_off_tutor_status", "tutor_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<TimeOffRequest {self.start_date}..{self.end_date} ({self.status})>"
