# backend/lessonhub/services/tutor_matching_service.py
"""
Tutor Matching Service for LessonHub

Helps book trial lessons:
- find_smart_available_tutors classifies every tutor of a subject for a
  preferred trial start
- find_next_available_dates suggests the next few days that still have free
  slots when the preferred day does not work

A trial booking starts with a demo run by an account manager; only the
tutor-led portion after it is checked against the tutor's calendar.
"""

from datetime import date, datetime, timedelta
import logging
from typing import Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import ConflictType, TutorAvailabilityState, Weekday
from ..core.exceptions import RepositoryException, ServiceException
from ..core.timezone_utils import (
    ensure_utc,
    format_short_date,
    local_day_bounds,
    local_to_utc,
    local_today,
)
from ..domain.intervals import ranges_overlap
from ..models.availability import TutorAvailability
from ..models.tutor import Tutor
from ..repositories import RepositoryFactory
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.lesson_repository import LessonRepository
from ..repositories.tutor_repository import TutorRepository
from ..schemas.availability_check import AvailabilityCheckResult
from ..schemas.tutor_matching import NextAvailableDate, SmartTutor, SmartTutorsResponse
from .availability_check_service import AvailabilityCheckService
from .base import BaseService

logger = logging.getLogger(__name__)

UNVERIFIED_MESSAGE = "Unable to verify availability"

STATUS_ORDER: Dict[TutorAvailabilityState, int] = {
    TutorAvailabilityState.AVAILABLE: 0,
    TutorAvailabilityState.BUSY: 1,
    TutorAvailabilityState.TIME_OFF: 2,
    TutorAvailabilityState.NO_AVAILABILITY: 3,
}


def trial_window(preferred_start: datetime) -> Tuple[datetime, datetime]:
    """UTC range of the tutor-led portion of a trial booked at ``preferred_start``."""
    start = ensure_utc(preferred_start) + timedelta(minutes=settings.trial_demo_offset_minutes)
    return start, start + timedelta(minutes=settings.trial_duration_minutes)


def classify(result: AvailabilityCheckResult) -> Tuple[TutorAvailabilityState, List[str]]:
    """Primary reason a tutor cannot take the trial, or AVAILABLE."""
    if result.is_available:
        return TutorAvailabilityState.AVAILABLE, []

    if any(conflict.is_check_error for conflict in result.conflicts):
        return TutorAvailabilityState.BUSY, [UNVERIFIED_MESSAGE]

    types = {ConflictType(conflict.type) for conflict in result.conflicts}
    messages = [conflict.message for conflict in result.conflicts]
    if ConflictType.TUTOR_AVAILABILITY in types:
        return TutorAvailabilityState.NO_AVAILABILITY, messages
    if ConflictType.TIME_OFF in types:
        return TutorAvailabilityState.TIME_OFF, messages
    return TutorAvailabilityState.BUSY, messages


class TutorMatchingService(BaseService):
    def __init__(
        self,
        db: Session,
        tutor_repository: Optional[TutorRepository] = None,
        availability_repository: Optional[AvailabilityRepository] = None,
        lesson_repository: Optional[LessonRepository] = None,
        availability_check_service: Optional[AvailabilityCheckService] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.tutor_repository = tutor_repository or RepositoryFactory.create_tutor_repository(db)
        self.availability_repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )
        self.lesson_repository = lesson_repository or RepositoryFactory.create_lesson_repository(db)
        self.availability_check_service = availability_check_service or AvailabilityCheckService(
            db,
            availability_repository=self.availability_repository,
            tutor_repository=self.tutor_repository,
        )

    def _match_tutor(self, tutor: Tutor, start: datetime, end: datetime) -> SmartTutor:
        try:
            result = self.availability_check_service.perform_full_availability_check(
                tutor.id, start, end, student_ids=[], include_alternatives=False
            )
            status, conflicts = classify(result)
        except (RepositoryException, ServiceException) as e:
            self.logger.error(f"Error checking availability for tutor {tutor.id}: {str(e)}")
            status, conflicts = TutorAvailabilityState.BUSY, [UNVERIFIED_MESSAGE]

        return SmartTutor(
            id=tutor.id,
            first_name=tutor.first_name,
            last_name=tutor.last_name,
            email=tutor.email,
            availability_status=status,
            conflicts=conflicts,
        )

    @BaseService.measure_operation("find_smart_available_tutors")
    def find_smart_available_tutors(
        self, subject_id: str, preferred_start: datetime
    ) -> SmartTutorsResponse:
        """
        Classify every active tutor of ``subject_id`` for a trial at ``preferred_start``.

        Returns:
            Tutors ordered available, busy, time off, no availability. Ties keep
            the repository's name order.
        """
        start, end = trial_window(preferred_start)
        tutors = self.tutor_repository.get_active_tutors_for_subject(subject_id)
        matched = [self._match_tutor(tutor, start, end) for tutor in tutors]
        matched.sort(key=lambda t: STATUS_ORDER[TutorAvailabilityState(t.availability_status)])
        return SmartTutorsResponse(trial_start=start, trial_end=end, tutors=matched)

    @staticmethod
    def _count_free_slots(
        day: date,
        windows: List[TutorAvailability],
        busy: List[Tuple[datetime, datetime]],
        slot: timedelta,
    ) -> int:
        free = 0
        for window in windows:
            slot_start = local_to_utc(day, window.start_time)
            window_end = local_to_utc(day, window.end_time)
            while slot_start + slot <= window_end:
                slot_end = slot_start + slot
                if not any(
                    ranges_overlap(slot_start, slot_end, b_start, b_end) for b_start, b_end in busy
                ):
                    free += 1
                slot_start = slot_end
        return free

    @BaseService.measure_operation("find_next_available_dates")
    def find_next_available_dates(
        self,
        subject_id: str,
        exclude_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> List[NextAvailableDate]:
        """
        Scan the days after ``today`` for free slots with tutors of ``subject_id``.

        Slots lie wholly inside a weekly window and must not overlap any of that
        tutor's scheduled or in-progress lessons.
        """
        start_day = today or local_today()
        tutor_ids = [t.id for t in self.tutor_repository.get_active_tutors_for_subject(subject_id)]
        if not tutor_ids:
            return []

        slot = timedelta(minutes=settings.slot_minutes)
        found: List[NextAvailableDate] = []
        for offset in range(1, settings.next_available_days + 1):
            day = start_day + timedelta(days=offset)
            if day == exclude_date:
                continue

            weekday = Weekday.for_datetime(day)
            windows_by_tutor = self.availability_repository.get_windows_for_tutors_on_day(
                tutor_ids, weekday
            )
            if not windows_by_tutor:
                continue

            day_start, day_end = local_day_bounds(day, day)
            lessons = self.lesson_repository.get_active_lessons_for_tutors(
                list(windows_by_tutor), day_start, day_end
            )

            total = 0
            free_tutors: Set[str] = set()
            for tutor_id, windows in windows_by_tutor.items():
                busy = [
                    (ensure_utc(lesson.start_time), ensure_utc(lesson.end_time))
                    for lesson in lessons
                    if lesson.tutor_id == tutor_id
                ]
                free = self._count_free_slots(day, windows, busy, slot)
                if free:
                    total += free
                    free_tutors.add(tutor_id)

            if total:
                found.append(
                    NextAvailableDate(
                        date=day,
                        day_name=weekday.label,
                        formatted_date=format_short_date(day),
                        tutor_count=len(free_tutors),
                        available_slots=total,
                    )
                )
            if len(found) >= settings.next_available_max_results:
                break

        return found
