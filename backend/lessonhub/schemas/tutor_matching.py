# backend/lessonhub/schemas/tutor_matching.py
"""Schemas for trial-booking tutor matching."""

import datetime
from typing import List, Optional

from pydantic import Field

from ..core.enums import TutorAvailabilityState
from .base import StandardizedModel


class SmartTutor(StandardizedModel):
    id: str
    first_name: str
    last_name: str
    email: Optional[str] = None
    availability_status: TutorAvailabilityState
    conflicts: List[str] = Field(default_factory=list)


class SmartTutorsResponse(StandardizedModel):
    trial_start: datetime.datetime
    trial_end: datetime.datetime
    tutors: List[SmartTutor] = Field(default_factory=list)


class NextAvailableDate(StandardizedModel):
    date: datetime.date
    day_name: str
    formatted_date: str
    tutor_count: int
    available_slots: int
