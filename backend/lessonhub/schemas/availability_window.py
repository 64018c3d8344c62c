# backend/lessonhub/schemas/availability_window.py
"""Weekly availability window schemas."""

import datetime
from typing import Any, Optional

from pydantic import ConfigDict, field_validator

from ..core.enums import Weekday
from .base import StandardizedModel, StrictRequestModel

TimeType = datetime.time


class AvailabilityWindowCreate(StrictRequestModel):
    day_of_week: Weekday
    start_time: TimeType
    end_time: TimeType

    @field_validator("end_time")
    @classmethod
    def validate_time_order(cls, v: TimeType, info: Any) -> TimeType:
        """Ensure end time is after start time."""
        if info.data.get("start_time") and v <= info.data["start_time"]:
            raise ValueError("End time must be after start time")
        return v


class AvailabilityWindowUpdate(StrictRequestModel):
    """Partial update; the service re-checks ordering against stored values."""

    day_of_week: Optional[Weekday] = None
    start_time: Optional[TimeType] = None
    end_time: Optional[TimeType] = None


class AvailabilityWindowResponse(StandardizedModel):
    id: str
    tutor_id: str
    day_of_week: Weekday
    start_time: TimeType
    end_time: TimeType

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
