# backend/lessonhub/schemas/availability_check.py
"""
Availability check schemas.

A conflict report is the aggregated result of the four booking checks plus the
canned suggestions and, when a different tutor could help, ranked alternatives.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field, model_validator

from ..core.enums import ConflictType
from .base import StandardizedModel, StrictRequestModel


class AvailabilityConflict(StandardizedModel):
    """One detected conflict. ``details`` carries the structured payload."""

    type: ConflictType
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_check_error(self) -> bool:
        """True for synthetic entries emitted when a sub-check itself failed."""
        return bool(self.details.get("error"))


class AlternativeTutorCandidate(StandardizedModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    available_slots: List[str] = Field(default_factory=list)
    has_conflict: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class AvailabilityCheckRequest(StrictRequestModel):
    """Booking attempt to validate. Naive datetimes are treated as UTC."""

    tutor_id: str = Field(..., min_length=1)
    start_time: datetime
    end_time: datetime
    student_ids: Optional[List[int]] = None
    exclude_lesson_id: Optional[str] = None
    include_alternatives: bool = True

    @model_validator(mode="after")
    def _check_time_order(self) -> "AvailabilityCheckRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AlternativeTutorsRequest(StrictRequestModel):
    original_tutor_id: str = Field(..., min_length=1)
    start_time: datetime
    end_time: datetime
    student_ids: Optional[List[int]] = None

    @model_validator(mode="after")
    def _check_time_order(self) -> "AlternativeTutorsRequest":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AvailabilityCheckResult(StandardizedModel):
    is_available: bool
    conflicts: List[AvailabilityConflict] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    alternative_tutors: List[AlternativeTutorCandidate] = Field(default_factory=list)
    has_alternatives: bool = False
