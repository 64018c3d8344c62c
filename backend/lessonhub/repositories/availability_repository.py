# backend/lessonhub/repositories/availability_repository.py
"""
Availability Repository for LessonHub

Reads and writes recurring weekly availability windows. The day-of-week column
is always written and queried with ``Weekday`` values.
"""

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.enums import Weekday
from ..core.exceptions import RepositoryException
from ..models.availability import TutorAvailability
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def _window_sort_key(window: TutorAvailability) -> tuple:
    return (Weekday(window.day_of_week).position, window.start_time)


class AvailabilityRepository(BaseRepository[TutorAvailability]):
    """Repository for weekly availability windows."""

    def __init__(self, db: Session):
        super().__init__(db, TutorAvailability)
        self.logger = logging.getLogger(__name__)

    def get_windows_for_day(self, tutor_id: str, day: Weekday) -> List[TutorAvailability]:
        """
        Get a tutor's windows on one weekday.

        Args:
            tutor_id: The tutor ID
            day: Canonical weekday

        Returns:
            Windows ordered by start time
        """
        try:
            return (
                self.db.query(TutorAvailability)
                .filter(
                    TutorAvailability.tutor_id == tutor_id,
                    TutorAvailability.day_of_week == Weekday(day).value,
                )
                .order_by(TutorAvailability.start_time)
                .all()
            )
        except Exception as e:
            self.logger.error(f"Error getting availability for {tutor_id} on {day}: {str(e)}")
            raise RepositoryException(f"Failed to get availability windows: {str(e)}")

    def get_windows_for_tutor(
        self, tutor_id: str, day: Optional[Weekday] = None
    ) -> List[TutorAvailability]:
        """All windows for a tutor, ordered Sunday first then by start time."""
        try:
            query = self.db.query(TutorAvailability).filter(
                TutorAvailability.tutor_id == tutor_id
            )
            if day is not None:
                query = query.filter(TutorAvailability.day_of_week == Weekday(day).value)
            return sorted(query.all(), key=_window_sort_key)
        except Exception as e:
            self.logger.error(f"Error listing availability for {tutor_id}: {str(e)}")
            raise RepositoryException(f"Failed to list availability windows: {str(e)}")

    def get_windows_for_tutors_on_day(
        self, tutor_ids: Sequence[str], day: Weekday
    ) -> Dict[str, List[TutorAvailability]]:
        """Windows on ``day`` grouped by tutor id; tutors without windows are absent."""
        if not tutor_ids:
            return {}
        try:
            rows = (
                self.db.query(TutorAvailability)
                .filter(
                    TutorAvailability.tutor_id.in_(list(tutor_ids)),
                    TutorAvailability.day_of_week == Weekday(day).value,
                )
                .order_by(TutorAvailability.start_time)
                .all()
            )
        except Exception as e:
            self.logger.error(f"Error getting availability on {day}: {str(e)}")
            raise RepositoryException(f"Failed to get availability windows: {str(e)}")

        grouped: Dict[str, List[TutorAvailability]] = {}
        for row in rows:
            grouped.setdefault(row.tutor_id, []).append(row)
        return grouped
