# backend/lessonhub/schemas/time_off.py
"""
Time-off request and impact-resolution schemas.
"""

import datetime
from typing import List, Optional

from pydantic import ConfigDict, Field

from ..core.enums import ResolutionAction, ResolutionOutcome, TimeOffStatus
from .base import StandardizedModel, StrictRequestModel

DateType = datetime.date
DateTimeType = datetime.datetime


class TimeOffRequestCreate(StrictRequestModel):
    tutor_id: str = Field(..., min_length=1)
    start_date: DateType
    end_date: DateType
    reason: str


class TimeOffReview(StrictRequestModel):
    approve: bool
    admin_user_id: str = Field(..., min_length=1)
    admin_notes: Optional[str] = None


class TimeOffRequestResponse(StandardizedModel):
    id: str
    tutor_id: str
    start_date: DateType
    end_date: DateType
    reason: str
    status: TimeOffStatus
    admin_notes: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[DateTimeType] = None
    created_at: Optional[DateTimeType] = None

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class ConflictStudent(StandardizedModel):
    id: int
    first_name: str
    last_name: str


class TimeOffConflict(StandardizedModel):
    """A scheduled lesson that an approved time-off window invalidates."""

    id: str
    title: str
    start_time: DateTimeType
    end_time: DateTimeType
    subject: Optional[str] = None
    lesson_type: Optional[str] = None
    students: List[ConflictStudent] = Field(default_factory=list)


class TimeOffConflictResult(StandardizedModel):
    has_conflicts: bool
    conflicts: List[TimeOffConflict] = Field(default_factory=list)
    can_approve: bool


class TimeOffReviewResponse(StandardizedModel):
    request: TimeOffRequestResponse
    impact: Optional[TimeOffConflictResult] = None


class ConflictResolution(StrictRequestModel):
    lesson_id: str = Field(..., min_length=1)
    action: ResolutionAction
    new_tutor_id: Optional[str] = None
    new_start_time: Optional[DateTimeType] = None
    new_end_time: Optional[DateTimeType] = None
    reason: Optional[str] = None


class ResolveConflictsRequest(StrictRequestModel):
    admin_user_id: str = Field(..., min_length=1)
    resolutions: List[ConflictResolution]


class ResolutionResult(StandardizedModel):
    lesson_id: str
    action: ResolutionAction
    outcome: ResolutionOutcome
    warning: Optional[str] = None
