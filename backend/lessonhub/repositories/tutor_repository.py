# backend/lessonhub/repositories/tutor_repository.py
"""
Tutor Repository for LessonHub

Lookups used when searching for alternative or matching tutors.
"""

import logging
from typing import List, Optional, cast

from sqlalchemy.orm import Session

from ..core.enums import TutorStatus
from ..core.exceptions import RepositoryException
from ..models.tutor import Tutor, TutorSubject
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TutorRepository(BaseRepository[Tutor]):
    """Repository for tutor data access."""

    def __init__(self, db: Session):
        super().__init__(db, Tutor)
        self.logger = logging.getLogger(__name__)

    def get_active_tutors(self, exclude_tutor_id: Optional[str] = None) -> List[Tutor]:
        """
        Get all active tutors, optionally excluding one.

        Args:
            exclude_tutor_id: Tutor to leave out (typically the one being replaced)

        Returns:
            Active tutors ordered by first and last name
        """
        try:
            query = self.db.query(Tutor).filter(Tutor.status == TutorStatus.ACTIVE.value)
            if exclude_tutor_id:
                query = query.filter(Tutor.id != exclude_tutor_id)
            return cast(List[Tutor], query.order_by(Tutor.first_name, Tutor.last_name).all())
        except Exception as e:
            self.logger.error(f"Error getting active tutors: {str(e)}")
            raise RepositoryException(f"Failed to get active tutors: {str(e)}")

    def get_active_tutors_for_subject(self, subject_id: str) -> List[Tutor]:
        """Active tutors who teach ``subject_id``."""
        try:
            return cast(
                List[Tutor],
                self.db.query(Tutor)
                .join(TutorSubject, TutorSubject.tutor_id == Tutor.id)
                .filter(
                    Tutor.status == TutorStatus.ACTIVE.value,
                    TutorSubject.subject_id == subject_id,
                )
                .order_by(Tutor.first_name, Tutor.last_name)
                .all(),
            )
        except Exception as e:
            self.logger.error(f"Error getting tutors for subject {subject_id}: {str(e)}")
            raise RepositoryException(f"Failed to get tutors for subject: {str(e)}")
