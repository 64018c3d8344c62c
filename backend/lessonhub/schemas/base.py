"""
Base schemas shared by every LessonHub DTO.

Responses use ``StandardizedModel`` (enum values serialized as plain strings);
requests use ``StrictRequestModel`` so unexpected fields are rejected.
"""

from pydantic import BaseModel, ConfigDict


class StandardizedModel(BaseModel):
    """Base model with standardized JSON encoding"""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True)


class StrictRequestModel(BaseModel):
    """Request DTO base that always forbids unexpected fields."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)
