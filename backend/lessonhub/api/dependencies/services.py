# backend/lessonhub/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each factory builds a service around the request's database session. Tests
swap any of them out through ``app.dependency_overrides``.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...integrations.lesson_space_client import build_lesson_space_client
from ...services.availability_check_service import AvailabilityCheckService
from ...services.availability_window_service import AvailabilityWindowService
from ...services.lesson_status_service import LessonStatusService, StatusMemo
from ...services.time_off_conflict_service import TimeOffConflictService, VideoRoomClient
from ...services.time_off_service import TimeOffService
from ...services.tutor_matching_service import TutorMatchingService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_video_room_client() -> VideoRoomClient:
    """Single video room client per process; it holds no per-request state."""
    return build_lesson_space_client()


def get_availability_check_service(db: Session = Depends(get_db)) -> AvailabilityCheckService:
    return AvailabilityCheckService(db)


def get_availability_window_service(db: Session = Depends(get_db)) -> AvailabilityWindowService:
    return AvailabilityWindowService(db)


def get_time_off_conflict_service(
    db: Session = Depends(get_db),
    video_client: VideoRoomClient = Depends(get_video_room_client),
) -> TimeOffConflictService:
    return TimeOffConflictService(db, video_client=video_client)


def get_time_off_service(
    db: Session = Depends(get_db),
    conflict_service: TimeOffConflictService = Depends(get_time_off_conflict_service),
) -> TimeOffService:
    return TimeOffService(db, conflict_service=conflict_service)


@lru_cache(maxsize=1)
def get_status_memo() -> StatusMemo:
    """Process-wide memo so versions and cached results outlive a single request."""
    return StatusMemo()


def get_lesson_status_service(
    db: Session = Depends(get_db),
    memo: StatusMemo = Depends(get_status_memo),
) -> LessonStatusService:
    return LessonStatusService(db, memo=memo)


def get_tutor_matching_service(db: Session = Depends(get_db)) -> TutorMatchingService:
    return TutorMatchingService(db)
