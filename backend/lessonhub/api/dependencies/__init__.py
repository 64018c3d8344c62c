# backend/lessonhub/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .database import get_db
from .services import (
    get_availability_check_service,
    get_availability_window_service,
    get_lesson_status_service,
    get_status_memo,
    get_time_off_conflict_service,
    get_time_off_service,
    get_tutor_matching_service,
    get_video_room_client,
)

__all__ = [
    # Database
    "get_db",
    # Services
    "get_availability_check_service",
    "get_availability_window_service",
    "get_lesson_status_service",
    "get_status_memo",
    "get_time_off_conflict_service",
    "get_time_off_service",
    "get_tutor_matching_service",
    "get_video_room_client",
]
