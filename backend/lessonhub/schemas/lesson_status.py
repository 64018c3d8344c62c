# backend/lessonhub/schemas/lesson_status.py
"""
Batched lesson status schemas.

Maps are keyed by lesson id. A lesson missing from a map was either unknown or
belonged to a batch whose query failed; ``failed_batches`` says which.
"""

import datetime
from typing import Dict, List, Optional

from pydantic import Field

from .base import StandardizedModel, StrictRequestModel


class LessonIdsRequest(StrictRequestModel):
    lesson_ids: List[Optional[str]] = Field(default_factory=list)


class AttendanceStatusFlags(StandardizedModel):
    is_cancelled: bool
    is_absent: bool
    total_students: int
    attendance_count: int


class LessonCompletionFlags(StandardizedModel):
    is_completed: bool
    student_count: int
    attendance_count: int
    has_homework: bool


class AttendanceStatusResponse(StandardizedModel):
    data: Dict[str, AttendanceStatusFlags] = Field(default_factory=dict)
    version: int = 0
    failed_batches: int = 0


class LessonCompletionResponse(StandardizedModel):
    data: Dict[str, LessonCompletionFlags] = Field(default_factory=dict)
    version: int = 0
    failed_batches: int = 0


class CompletedLessonsResponse(StandardizedModel):
    date_from: Optional[datetime.date] = None
    date_to: Optional[datetime.date] = None
    lesson_ids: List[str] = Field(default_factory=list)
