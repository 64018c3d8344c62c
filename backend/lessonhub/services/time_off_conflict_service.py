# backend/lessonhub/services/time_off_conflict_service.py
"""
Time-off Conflict Service for LessonHub

Finds the scheduled lessons an approved time-off window invalidates and
applies the admin's per-lesson resolution:

- reassign: move the lesson to another tutor. When the tutor actually changes,
  the lesson's video room is recreated as a best-effort side effect; a failure
  there is logged and reported as a warning, never rolled back.
- cancel: mark the lesson cancelled.
- reschedule: not implemented. The outcome says so and nothing changes.
"""

from datetime import date, datetime, timezone
import logging
from typing import List, Optional, Sequence, Union

from sqlalchemy.orm import Session

from ..core.enums import LessonStatus, ResolutionAction, ResolutionOutcome
from ..core.exceptions import NotFoundException, RepositoryException, ServiceException
from ..core.timezone_utils import ensure_utc, local_day_bounds
from ..domain.intervals import ranges_intersect_inclusive
from ..integrations.lesson_space_client import (
    FakeLessonSpaceClient,
    LessonSpaceClient,
    LessonSpaceError,
    build_lesson_space_client,
)
from ..models.lesson import Lesson
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.lesson_repository import LessonRepository
from ..repositories.tutor_repository import TutorRepository
from ..schemas.availability_check import AlternativeTutorCandidate
from ..schemas.time_off import (
    ConflictResolution,
    ConflictStudent,
    ResolutionResult,
    TimeOffConflict,
    TimeOffConflictResult,
)
from .availability_check_service import AvailabilityCheckService
from .base import BaseService

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTION_REASON = "Time off conflict resolution"
ROOM_RECREATION_WARNING = (
    "Lesson was reassigned but its video room could not be recreated; "
    "the room may not work until it is recreated"
)

VideoRoomClient = Union[LessonSpaceClient, FakeLessonSpaceClient]


def _to_conflict(lesson: Lesson) -> TimeOffConflict:
    return TimeOffConflict(
        id=lesson.id,
        title=lesson.title,
        start_time=ensure_utc(lesson.start_time),
        end_time=ensure_utc(lesson.end_time),
        subject=lesson.subject,
        lesson_type=lesson.lesson_type,
        students=[
            ConflictStudent(
                id=enrolment.student.id,
                first_name=enrolment.student.first_name,
                last_name=enrolment.student.last_name,
            )
            for enrolment in lesson.lesson_students
        ],
    )


class TimeOffConflictService(BaseService):
    """Impact resolver for approved time off."""

    def __init__(
        self,
        db: Session,
        lesson_repository: Optional[LessonRepository] = None,
        tutor_repository: Optional[TutorRepository] = None,
        availability_check_service: Optional[AvailabilityCheckService] = None,
        video_client: Optional[VideoRoomClient] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.lesson_repository = lesson_repository or RepositoryFactory.create_lesson_repository(db)
        self.tutor_repository = tutor_repository or RepositoryFactory.create_tutor_repository(db)
        self.availability_check_service = availability_check_service or AvailabilityCheckService(
            db
        )
        self.video_client = video_client or build_lesson_space_client()

    def _require_lesson(self, lesson_id: str) -> Lesson:
        lesson = self.lesson_repository.get_by_id(lesson_id)
        if not lesson:
            raise NotFoundException(f"Lesson {lesson_id} not found", code="LESSON_NOT_FOUND")
        return lesson

    @BaseService.measure_operation("check_time_off_conflicts")
    def check_time_off_conflicts(
        self, tutor_id: str, start_date: date, end_date: date
    ) -> TimeOffConflictResult:
        """
        Scheduled lessons for ``tutor_id`` touching the local days ``start_date..end_date``.

        A lesson counts if it starts inside the window, ends inside it, or spans it;
        shared boundaries count.
        """
        window_start, window_end = local_day_bounds(start_date, end_date)
        lessons = self.lesson_repository.get_scheduled_lessons_in_window(
            tutor_id, window_start, window_end
        )
        conflicts = [
            _to_conflict(lesson)
            for lesson in lessons
            if ranges_intersect_inclusive(
                ensure_utc(lesson.start_time), ensure_utc(lesson.end_time), window_start, window_end
            )
        ]
        if conflicts:
            self.logger.info(
                f"Time off {start_date}..{end_date} for tutor {tutor_id} "
                f"affects {len(conflicts)} scheduled lessons"
            )
        return TimeOffConflictResult(
            has_conflicts=bool(conflicts), conflicts=conflicts, can_approve=not conflicts
        )

    @BaseService.measure_operation("get_alternative_tutors_for_lesson")
    def get_alternative_tutors_for_lesson(
        self, lesson_id: str, exclude_tutor_id: str
    ) -> List[AlternativeTutorCandidate]:
        lesson = self._require_lesson(lesson_id)
        return self.availability_check_service.find_alternative_tutors(
            exclude_tutor_id, ensure_utc(lesson.start_time), ensure_utc(lesson.end_time)
        )

    def _recreate_video_room(self, lesson_id: str) -> Optional[str]:
        """Returns a warning when the room could not be recreated."""
        try:
            room = self.video_client.create_room(lesson_id=lesson_id)
        except LessonSpaceError as e:
            prometheus_metrics.inc_video_room_recreation("error")
            self.logger.warning(
                f"Failed to recreate video room for lesson {lesson_id} after tutor change: "
                f"{e.message}"
            )
            return ROOM_RECREATION_WARNING

        prometheus_metrics.inc_video_room_recreation("success")
        room_id = room.get("roomId") or room.get("room_id")
        if room_id:
            try:
                with self.transaction():
                    self.lesson_repository.update(lesson_id, video_room_id=str(room_id))
            except (RepositoryException, ServiceException) as e:
                self.logger.warning(f"Could not store new room id for lesson {lesson_id}: {e}")
                return ROOM_RECREATION_WARNING
        return None

    @BaseService.measure_operation("reassign_lesson")
    def reassign_lesson(
        self, lesson_id: str, new_tutor_id: str, reason: str, admin_user_id: str
    ) -> Optional[str]:
        """
        Move a lesson to ``new_tutor_id``.

        Returns:
            A warning string if the video room could not be recreated, else None
        """
        lesson = self._require_lesson(lesson_id)
        if not self.tutor_repository.get_by_id(new_tutor_id):
            raise NotFoundException(f"Tutor {new_tutor_id} not found", code="TUTOR_NOT_FOUND")

        tutor_changed = lesson.tutor_id != new_tutor_id
        with self.transaction():
            self.lesson_repository.update(lesson_id, tutor_id=new_tutor_id)

        warning = None
        if tutor_changed:
            self.logger.info(f"Tutor changed for lesson {lesson_id}, recreating video room")
            warning = self._recreate_video_room(lesson_id)

        self.logger.info(
            f"Lesson {lesson_id} reassigned to tutor {new_tutor_id} by admin {admin_user_id}. "
            f"Reason: {reason}"
        )
        return warning

    @BaseService.measure_operation("cancel_lesson")
    def cancel_lesson(self, lesson_id: str, reason: str, admin_user_id: str) -> None:
        self._require_lesson(lesson_id)
        with self.transaction():
            self.lesson_repository.update(
                lesson_id,
                status=LessonStatus.CANCELLED.value,
                cancellation_reason=reason,
                cancelled_by_id=admin_user_id,
                cancelled_at=datetime.now(timezone.utc),
            )
        self.logger.info(f"Lesson {lesson_id} cancelled by admin {admin_user_id}. Reason: {reason}")

    @BaseService.measure_operation("resolve_all_conflicts")
    def resolve_all_conflicts(
        self, resolutions: Sequence[ConflictResolution], admin_user_id: str
    ) -> List[ResolutionResult]:
        """
        Apply resolutions in order.

        Each applied resolution commits on its own; an error stops processing
        and propagates, leaving earlier resolutions in place.
        """
        results: List[ResolutionResult] = []
        for resolution in resolutions:
            action = ResolutionAction(resolution.action)
            reason = resolution.reason or DEFAULT_RESOLUTION_REASON

            if action == ResolutionAction.REASSIGN:
                if not resolution.new_tutor_id:
                    self.logger.warning(
                        f"Skipping reassignment of lesson {resolution.lesson_id}: no new tutor"
                    )
                    results.append(
                        ResolutionResult(
                            lesson_id=resolution.lesson_id,
                            action=action,
                            outcome=ResolutionOutcome.SKIPPED,
                            warning="No replacement tutor was selected",
                        )
                    )
                    continue
                warning = self.reassign_lesson(
                    resolution.lesson_id, resolution.new_tutor_id, reason, admin_user_id
                )
                results.append(
                    ResolutionResult(
                        lesson_id=resolution.lesson_id,
                        action=action,
                        outcome=ResolutionOutcome.APPLIED,
                        warning=warning,
                    )
                )
            elif action == ResolutionAction.CANCEL:
                self.cancel_lesson(resolution.lesson_id, reason, admin_user_id)
                results.append(
                    ResolutionResult(
                        lesson_id=resolution.lesson_id,
                        action=action,
                        outcome=ResolutionOutcome.APPLIED,
                    )
                )
            else:
                # TODO: reschedule needs a product decision on how the new slot is chosen
                self.logger.info(
                    f"Reschedule requested for lesson {resolution.lesson_id}; not implemented"
                )
                results.append(
                    ResolutionResult(
                        lesson_id=resolution.lesson_id,
                        action=action,
                        outcome=ResolutionOutcome.NOT_IMPLEMENTED,
                        warning="Rescheduling is not implemented",
                    )
                )

        return results
