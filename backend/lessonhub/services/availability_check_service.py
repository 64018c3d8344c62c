# backend/lessonhub/services/availability_check_service.py
"""
Availability Check Service for LessonHub

Validates a booking attempt against four independent sources:
- The tutor's weekly availability windows (containment)
- The tutor's other lessons (half-open overlap)
- The tutor's approved time off (inclusive date overlap)
- Other lessons of the enrolled students (half-open overlap)

Each sub-check catches its own failure and reports it as an explicit
"Error checking ..." conflict, so a broken query never reads as "available".
The session is rolled back after a failed read so the remaining checks still run.
When a conflict is one a different tutor could fix, alternative tutors are
searched and ranked.
"""

from datetime import datetime
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.enums import TUTOR_SPECIFIC_CONFLICTS, ConflictType, Weekday
from ..core.timezone_utils import (
    ensure_utc,
    format_clock,
    format_long_date,
    format_short_date,
    to_local,
)
from ..domain.intervals import (
    dates_intersect_inclusive,
    fits_within_window,
    format_window,
    ranges_overlap,
)
from ..models.availability import TutorAvailability
from ..models.lesson import Lesson
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories import RepositoryFactory
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from ..repositories.tutor_repository import TutorRepository
from ..schemas.availability_check import (
    AlternativeTutorCandidate,
    AvailabilityCheckResult,
    AvailabilityConflict,
)
from .base import BaseService

logger = logging.getLogger(__name__)

# Ordered (conflict type, remediation) pairs; output order follows this list.
SUGGESTIONS: Tuple[Tuple[ConflictType, str], ...] = (
    (
        ConflictType.TUTOR_AVAILABILITY,
        "Check the tutor's availability schedule and select a time within their available hours",
    ),
    (
        ConflictType.LESSON_CONFLICT,
        "Choose a different time slot or consider rescheduling the conflicting lesson",
    ),
    (ConflictType.TIME_OFF, "Select a date when the tutor is not on approved time off"),
    (
        ConflictType.STUDENT_CONFLICT,
        "Choose a different time or remove conflicting students from this lesson",
    ),
)
FALLBACK_SUGGESTION = "Please resolve the conflicts above before scheduling this lesson"


def generate_suggestions(conflicts: Sequence[AvailabilityConflict]) -> List[str]:
    """Map which conflict types are present to canned remediation strings."""
    present = {ConflictType(conflict.type) for conflict in conflicts}
    suggestions = [text for conflict_type, text in SUGGESTIONS if conflict_type in present]
    if not suggestions and conflicts:
        suggestions.append(FALLBACK_SUGGESTION)
    return suggestions


def _lesson_summary(lesson: Lesson) -> Dict[str, Any]:
    return {
        "id": lesson.id,
        "title": lesson.title,
        "start_time": ensure_utc(lesson.start_time).isoformat(),
        "end_time": ensure_utc(lesson.end_time).isoformat(),
        "status": lesson.status,
    }


def _error_conflict(
    conflict_type: ConflictType, message: str, exc: Exception
) -> AvailabilityConflict:
    return AvailabilityConflict(
        type=conflict_type, message=message, details={"error": str(exc) or type(exc).__name__}
    )


class AvailabilityCheckService(BaseService):
    """
    Conflict detection and alternative-tutor ranking for booking attempts.

    Request timestamps are absolute; weekday and time-of-day for the weekly
    availability check are taken in the organisation's local timezone.
    """

    def __init__(
        self,
        db: Session,
        conflict_repository: Optional[ConflictCheckerRepository] = None,
        availability_repository: Optional[AvailabilityRepository] = None,
        tutor_repository: Optional[TutorRepository] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.conflict_repository = (
            conflict_repository or RepositoryFactory.create_conflict_checker_repository(db)
        )
        self.availability_repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )
        self.tutor_repository = tutor_repository or RepositoryFactory.create_tutor_repository(db)

    # Helpers

    @staticmethod
    def _local_span(start_time: datetime, end_time: datetime) -> Tuple[datetime, datetime]:
        return to_local(start_time), to_local(end_time)

    @staticmethod
    def _window_contains(
        window: TutorAvailability, local_start: datetime, local_end: datetime
    ) -> bool:
        # A range that crosses local midnight cannot sit inside one weekday window.
        if local_start.date() != local_end.date():
            return False
        return fits_within_window(
            local_start.time(), local_end.time(), window.start_time, window.end_time
        )

    # Sub-checks

    @BaseService.measure_operation("check_tutor_availability")
    def check_tutor_availability(
        self, tutor_id: str, start_time: datetime, end_time: datetime
    ) -> List[AvailabilityConflict]:
        """
        Check that the requested range sits inside one of the tutor's weekly windows.

        Returns:
            Zero or one ``tutor_availability`` conflict
        """
        conflicts: List[AvailabilityConflict] = []
        try:
            local_start, local_end = self._local_span(start_time, end_time)
            day = Weekday.for_datetime(local_start)
            windows = self.availability_repository.get_windows_for_day(tutor_id, day)

            if not windows:
                conflicts.append(
                    AvailabilityConflict(
                        type=ConflictType.TUTOR_AVAILABILITY,
                        message=f"Tutor is not available on {day.value}s",
                        details={"day_of_week": day.value},
                    )
                )
                return conflicts

            if not any(self._window_contains(w, local_start, local_end) for w in windows):
                slots = [format_window(w.start_time, w.end_time) for w in windows]
                conflicts.append(
                    AvailabilityConflict(
                        type=ConflictType.TUTOR_AVAILABILITY,
                        message=(
                            "Requested time is outside tutor's availability. "
                            f"Available slots on {day.value}s: {', '.join(slots)}"
                        ),
                        details={"day_of_week": day.value, "available_slots": slots},
                    )
                )
        except Exception as e:
            self.logger.error(f"Error checking tutor availability: {str(e)}")
            self.db.rollback()
            prometheus_metrics.inc_conflict_check_failure("availability")
            conflicts.append(
                _error_conflict(
                    ConflictType.TUTOR_AVAILABILITY, "Error checking tutor availability", e
                )
            )

        return conflicts

    @BaseService.measure_operation("check_calendar_conflicts")
    def check_calendar_conflicts(
        self,
        tutor_id: str,
        start_time: datetime,
        end_time: datetime,
        exclude_lesson_id: Optional[str] = None,
    ) -> List[AvailabilityConflict]:
        """One ``lesson_conflict`` per active, non-demo lesson overlapping the range."""
        conflicts: List[AvailabilityConflict] = []
        try:
            start_utc, end_utc = ensure_utc(start_time), ensure_utc(end_time)
            lessons = self.conflict_repository.get_overlapping_tutor_lessons(
                tutor_id, start_utc, end_utc, exclude_lesson_id
            )
            for lesson in lessons:
                lesson_start = ensure_utc(lesson.start_time)
                lesson_end = ensure_utc(lesson.end_time)
                if not ranges_overlap(start_utc, end_utc, lesson_start, lesson_end):
                    continue
                conflicts.append(
                    AvailabilityConflict(
                        type=ConflictType.LESSON_CONFLICT,
                        message=(
                            f'Conflicts with existing lesson: "{lesson.title}" '
                            f"({format_clock(lesson_start)} - {format_clock(lesson_end)})"
                        ),
                        details={"lesson": _lesson_summary(lesson)},
                    )
                )
        except Exception as e:
            self.logger.error(f"Error checking calendar conflicts: {str(e)}")
            self.db.rollback()
            prometheus_metrics.inc_conflict_check_failure("lesson")
            conflicts.append(
                _error_conflict(
                    ConflictType.LESSON_CONFLICT, "Error checking calendar conflicts", e
                )
            )

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} lesson conflicts for tutor {tutor_id} "
                f"between {start_time} and {end_time}"
            )
        return conflicts

    @BaseService.measure_operation("check_time_off_conflicts")
    def check_time_off_conflicts(
        self, tutor_id: str, start_time: datetime, end_time: datetime
    ) -> List[AvailabilityConflict]:
        """
        One ``time_off`` conflict per approved request touching the range's local dates.

        Boundaries are inclusive: a lesson on the last day of approved time off
        conflicts.
        """
        conflicts: List[AvailabilityConflict] = []
        try:
            local_start, local_end = self._local_span(start_time, end_time)
            start_day, end_day = local_start.date(), local_end.date()
            requests = self.conflict_repository.get_approved_time_off(tutor_id, start_day, end_day)
            for time_off in requests:
                if not dates_intersect_inclusive(
                    start_day, end_day, time_off.start_date, time_off.end_date
                ):
                    continue
                conflicts.append(
                    AvailabilityConflict(
                        type=ConflictType.TIME_OFF,
                        message=(
                            "Conflicts with approved time off: "
                            f"{format_short_date(time_off.start_date)} - "
                            f"{format_long_date(time_off.end_date)} ({time_off.reason})"
                        ),
                        details={
                            "time_off": {
                                "id": time_off.id,
                                "start_date": time_off.start_date.isoformat(),
                                "end_date": time_off.end_date.isoformat(),
                                "reason": time_off.reason,
                            }
                        },
                    )
                )
        except Exception as e:
            self.logger.error(f"Error checking time off conflicts: {str(e)}")
            self.db.rollback()
            prometheus_metrics.inc_conflict_check_failure("time_off")
            conflicts.append(
                _error_conflict(ConflictType.TIME_OFF, "Error checking time off conflicts", e)
            )

        return conflicts

    @BaseService.measure_operation("check_student_conflicts")
    def check_student_conflicts(
        self,
        student_ids: Optional[Sequence[int]],
        start_time: datetime,
        end_time: datetime,
        exclude_lesson_id: Optional[str] = None,
    ) -> List[AvailabilityConflict]:
        """One ``student_conflict`` per overlapping lesson, naming the affected students."""
        conflicts: List[AvailabilityConflict] = []
        if not student_ids:
            return conflicts

        wanted = set(student_ids)
        try:
            start_utc, end_utc = ensure_utc(start_time), ensure_utc(end_time)
            lessons = self.conflict_repository.get_overlapping_student_lessons(
                list(wanted), start_utc, end_utc, exclude_lesson_id
            )
            for lesson in lessons:
                lesson_start = ensure_utc(lesson.start_time)
                lesson_end = ensure_utc(lesson.end_time)
                if not ranges_overlap(start_utc, end_utc, lesson_start, lesson_end):
                    continue
                names = [
                    enrolment.student.full_name
                    for enrolment in lesson.lesson_students
                    if enrolment.student_id in wanted
                ]
                if not names:
                    continue
                conflicts.append(
                    AvailabilityConflict(
                        type=ConflictType.STUDENT_CONFLICT,
                        message=(
                            f"Student conflict: {', '.join(names)} already has lesson "
                            f'"{lesson.title}" '
                            f"({format_clock(lesson_start)} - {format_clock(lesson_end)})"
                        ),
                        details={"lesson": _lesson_summary(lesson), "conflicting_students": names},
                    )
                )
        except Exception as e:
            self.logger.error(f"Error checking student conflicts: {str(e)}")
            self.db.rollback()
            prometheus_metrics.inc_conflict_check_failure("student")
            conflicts.append(
                _error_conflict(
                    ConflictType.STUDENT_CONFLICT, "Error checking student conflicts", e
                )
            )

        return conflicts

    # Alternatives

    @BaseService.measure_operation("find_alternative_tutors")
    def find_alternative_tutors(
        self,
        original_tutor_id: str,
        start_time: datetime,
        end_time: datetime,
        student_ids: Optional[Sequence[int]] = None,
    ) -> List[AlternativeTutorCandidate]:
        """
        Find other active tutors whose weekly availability contains the range.

        Tutors without a containing window are skipped. The others run the
        lesson, time-off and student checks to set ``has_conflict``.

        Returns:
            Candidates, conflict-free first, then by "first last" name
        """
        local_start, local_end = self._local_span(start_time, end_time)
        day = Weekday.for_datetime(local_start)

        tutors = [
            tutor
            for tutor in self.tutor_repository.get_active_tutors(exclude_tutor_id=original_tutor_id)
            if tutor.id != original_tutor_id
        ]
        windows_by_tutor = self.availability_repository.get_windows_for_tutors_on_day(
            [tutor.id for tutor in tutors], day
        )

        candidates: List[AlternativeTutorCandidate] = []
        for tutor in tutors:
            matching = [
                window
                for window in windows_by_tutor.get(tutor.id, [])
                if self._window_contains(window, local_start, local_end)
            ]
            if not matching:
                continue

            conflicts = (
                self.check_calendar_conflicts(tutor.id, start_time, end_time)
                + self.check_time_off_conflicts(tutor.id, start_time, end_time)
                + self.check_student_conflicts(student_ids, start_time, end_time)
            )
            candidates.append(
                AlternativeTutorCandidate(
                    id=tutor.id,
                    first_name=tutor.first_name,
                    last_name=tutor.last_name,
                    email=tutor.email,
                    available_slots=[format_window(w.start_time, w.end_time) for w in matching],
                    has_conflict=bool(conflicts),
                )
            )

        return rank_candidates(candidates)

    # Composition

    @BaseService.measure_operation("perform_full_availability_check")
    def perform_full_availability_check(
        self,
        tutor_id: str,
        start_time: datetime,
        end_time: datetime,
        student_ids: Optional[Sequence[int]] = None,
        exclude_lesson_id: Optional[str] = None,
        include_alternatives: bool = True,
    ) -> AvailabilityCheckResult:
        """
        Run all four checks and assemble the conflict report.

        Conflicts are concatenated availability, lesson, time-off, student.
        """
        conflicts: List[AvailabilityConflict] = [
            *self.check_tutor_availability(tutor_id, start_time, end_time),
            *self.check_calendar_conflicts(tutor_id, start_time, end_time, exclude_lesson_id),
            *self.check_time_off_conflicts(tutor_id, start_time, end_time),
            *self.check_student_conflicts(student_ids, start_time, end_time, exclude_lesson_id),
        ]

        alternatives: List[AlternativeTutorCandidate] = []
        if include_alternatives and has_tutor_specific_conflict(conflicts):
            try:
                alternatives = self.find_alternative_tutors(
                    tutor_id, start_time, end_time, student_ids
                )
            except Exception as e:
                self.logger.error(f"Error finding alternative tutors: {str(e)}")

        return AvailabilityCheckResult(
            is_available=not conflicts,
            conflicts=conflicts,
            suggestions=generate_suggestions(conflicts),
            alternative_tutors=alternatives,
            has_alternatives=bool(alternatives),
        )


def has_tutor_specific_conflict(conflicts: Iterable[AvailabilityConflict]) -> bool:
    """Student double-bookings alone never justify switching tutor."""
    return any(ConflictType(c.type) in TUTOR_SPECIFIC_CONFLICTS for c in conflicts)


def rank_candidates(
    candidates: Iterable[AlternativeTutorCandidate],
) -> List[AlternativeTutorCandidate]:
    """Stable sort: conflict-free before conflicted, then by "first last" ignoring case."""
    return sorted(
        candidates, key=lambda c: (c.has_conflict, c.full_name.casefold(), c.full_name)
    )
