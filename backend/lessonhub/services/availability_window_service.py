# backend/lessonhub/services/availability_window_service.py
"""
Availability Window Service for LessonHub

Write path for recurring weekly availability. Day-of-week values are always
stored as canonical ``Weekday`` values so the conflict checks can find them.
"""

from datetime import time
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..core.enums import Weekday
from ..core.exceptions import NotFoundException, ValidationException
from ..models.availability import TutorAvailability
from ..repositories import RepositoryFactory
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.tutor_repository import TutorRepository
from .base import BaseService

logger = logging.getLogger(__name__)


def _validate_order(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise ValidationException(
            "Start time must be before end time",
            code="INVALID_TIME_RANGE",
            details={"start_time": start_time.isoformat(), "end_time": end_time.isoformat()},
        )


class AvailabilityWindowService(BaseService):
    def __init__(
        self,
        db: Session,
        repository: Optional[AvailabilityRepository] = None,
        tutor_repository: Optional[TutorRepository] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)
        self.tutor_repository = tutor_repository or RepositoryFactory.create_tutor_repository(db)

    def _require_tutor(self, tutor_id: str) -> None:
        if not self.tutor_repository.get_by_id(tutor_id):
            raise NotFoundException(f"Tutor {tutor_id} not found", code="TUTOR_NOT_FOUND")

    def _require_window(self, window_id: str) -> TutorAvailability:
        window = self.repository.get_by_id(window_id)
        if not window:
            raise NotFoundException(
                f"Availability window {window_id} not found", code="WINDOW_NOT_FOUND"
            )
        return window

    @BaseService.measure_operation("create_window")
    def create_window(
        self, tutor_id: str, day_of_week: Weekday, start_time: time, end_time: time
    ) -> TutorAvailability:
        """
        Add a weekly window for a tutor.

        Raises:
            NotFoundException: Unknown tutor
            ValidationException: ``start_time`` is not before ``end_time``
        """
        self._require_tutor(tutor_id)
        _validate_order(start_time, end_time)
        day = Weekday(day_of_week)

        with self.transaction():
            window = self.repository.create(
                tutor_id=tutor_id,
                day_of_week=day.value,
                start_time=start_time,
                end_time=end_time,
            )

        self.logger.info(
            f"Created availability window {window.id} for tutor {tutor_id} on {day.value}"
        )
        return window

    @BaseService.measure_operation("list_windows")
    def list_windows(
        self, tutor_id: str, day_of_week: Optional[Weekday] = None
    ) -> List[TutorAvailability]:
        self._require_tutor(tutor_id)
        return self.repository.get_windows_for_tutor(tutor_id, day_of_week)

    @BaseService.measure_operation("update_window")
    def update_window(
        self,
        window_id: str,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
        day_of_week: Optional[Weekday] = None,
    ) -> TutorAvailability:
        """Partial update; ordering is re-validated against the merged values."""
        window = self._require_window(window_id)
        new_start = start_time if start_time is not None else window.start_time
        new_end = end_time if end_time is not None else window.end_time
        _validate_order(new_start, new_end)

        changes: Dict[str, Any] = {"start_time": new_start, "end_time": new_end}
        if day_of_week is not None:
            changes["day_of_week"] = Weekday(day_of_week).value

        with self.transaction():
            updated = self.repository.update(window_id, **changes)

        return updated or window

    @BaseService.measure_operation("delete_window")
    def delete_window(self, window_id: str) -> None:
        self._require_window(window_id)
        with self.transaction():
            self.repository.delete(window_id)
        self.logger.info(f"Deleted availability window {window_id}")
