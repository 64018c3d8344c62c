# backend/lessonhub/repositories/time_off_repository.py
"""
Time-off Repository for LessonHub

CRUD and listing for tutor time-off requests.
"""

import logging
from typing import List, Optional, cast

from sqlalchemy.orm import Session

from ..core.enums import TimeOffStatus
from ..core.exceptions import RepositoryException
from ..models.time_off import TimeOffRequest
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class TimeOffRepository(BaseRepository[TimeOffRequest]):
    def __init__(self, db: Session):
        super().__init__(db, TimeOffRequest)
        self.logger = logging.getLogger(__name__)

    def list_requests(
        self,
        tutor_id: Optional[str] = None,
        status: Optional[TimeOffStatus] = None,
    ) -> List[TimeOffRequest]:
        """
        List requests, newest first.

        Args:
            tutor_id: Only this tutor's requests
            status: Only requests in this status
        """
        try:
            query = self.db.query(TimeOffRequest)
            if tutor_id:
                query = query.filter(TimeOffRequest.tutor_id == tutor_id)
            if status is not None:
                query = query.filter(TimeOffRequest.status == TimeOffStatus(status).value)
            return cast(
                List[TimeOffRequest],
                query.order_by(TimeOffRequest.created_at.desc(), TimeOffRequest.id.desc()).all(),
            )
        except Exception as e:
            self.logger.error(f"Error listing time-off requests: {str(e)}")
            raise RepositoryException(f"Failed to list time-off requests: {str(e)}")
