# backend/lessonhub/services/time_off_service.py
"""
Time-off Service for LessonHub

Lifecycle of tutor time-off requests:

    pending --approve--> approved
    pending --reject---> rejected
    pending --cancel---> (deleted, by the requesting tutor only)

Only approved requests block scheduling. Approval hands back the impact
report for the approved window so the admin can resolve affected lessons.
"""

from datetime import date, datetime, timezone
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import TimeOffStatus
from ..core.exceptions import (
    ForbiddenException,
    InsufficientNoticeException,
    InvalidStateTransitionException,
    NotFoundException,
    ValidationException,
)
from ..core.timezone_utils import local_today
from ..models.time_off import TimeOffRequest
from ..repositories import RepositoryFactory
from ..repositories.time_off_repository import TimeOffRepository
from ..repositories.tutor_repository import TutorRepository
from ..schemas.time_off import TimeOffConflictResult
from .base import BaseService
from .time_off_conflict_service import TimeOffConflictService

logger = logging.getLogger(__name__)


class TimeOffService(BaseService):
    def __init__(
        self,
        db: Session,
        repository: Optional[TimeOffRepository] = None,
        tutor_repository: Optional[TutorRepository] = None,
        conflict_service: Optional[TimeOffConflictService] = None,
        min_notice_days: Optional[int] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_time_off_repository(db)
        self.tutor_repository = tutor_repository or RepositoryFactory.create_tutor_repository(db)
        self.conflict_service = conflict_service or TimeOffConflictService(db)
        self.min_notice_days = (
            settings.time_off_min_notice_days if min_notice_days is None else min_notice_days
        )

    def _require_request(self, request_id: str) -> TimeOffRequest:
        request = self.repository.get_by_id(request_id)
        if not request:
            raise NotFoundException(
                f"Time-off request {request_id} not found", code="TIME_OFF_NOT_FOUND"
            )
        return request

    @BaseService.measure_operation("create_time_off_request")
    def create_request(
        self,
        tutor_id: str,
        start_date: date,
        end_date: date,
        reason: str,
        today: Optional[date] = None,
    ) -> TimeOffRequest:
        """
        Submit a pending request.

        Raises:
            NotFoundException: Unknown tutor
            ValidationException: Blank reason or end before start
            InsufficientNoticeException: Start is closer than the minimum notice
        """
        if not self.tutor_repository.get_by_id(tutor_id):
            raise NotFoundException(f"Tutor {tutor_id} not found", code="TUTOR_NOT_FOUND")
        if not reason or not reason.strip():
            raise ValidationException("A reason is required for time off", code="REASON_REQUIRED")
        if end_date < start_date:
            raise ValidationException(
                "End date must be on or after start date", code="INVALID_DATE_RANGE"
            )

        days_notice = (start_date - (today or local_today())).days
        if days_notice < self.min_notice_days:
            raise InsufficientNoticeException(self.min_notice_days, days_notice)

        with self.transaction():
            request = self.repository.create(
                tutor_id=tutor_id,
                start_date=start_date,
                end_date=end_date,
                reason=reason.strip(),
                status=TimeOffStatus.PENDING.value,
            )

        self.logger.info(
            f"Time-off request {request.id} created for tutor {tutor_id}: {start_date}..{end_date}"
        )
        return request

    @BaseService.measure_operation("review_time_off_request")
    def review_request(
        self,
        request_id: str,
        approve: bool,
        admin_user_id: str,
        admin_notes: Optional[str] = None,
    ) -> Tuple[TimeOffRequest, Optional[TimeOffConflictResult]]:
        """
        Approve or reject a pending request.

        Returns:
            The updated request and, on approval, the lessons the window affects
        """
        request = self._require_request(request_id)
        action = "approve" if approve else "reject"
        if request.status != TimeOffStatus.PENDING.value:
            raise InvalidStateTransitionException("time-off request", request.status, action)

        new_status = TimeOffStatus.APPROVED if approve else TimeOffStatus.REJECTED
        with self.transaction():
            self.repository.update(
                request_id,
                status=new_status.value,
                admin_notes=admin_notes,
                reviewed_by=admin_user_id,
                reviewed_at=datetime.now(timezone.utc),
            )

        self.logger.info(f"Time-off request {request_id} {new_status.value} by {admin_user_id}")

        impact = None
        if approve:
            impact = self.conflict_service.check_time_off_conflicts(
                request.tutor_id, request.start_date, request.end_date
            )
        return request, impact

    @BaseService.measure_operation("cancel_time_off_request")
    def cancel_request(self, request_id: str, tutor_id: str) -> None:
        """Delete a pending request. Only the tutor who made it may cancel it."""
        request = self._require_request(request_id)
        if request.tutor_id != tutor_id:
            raise ForbiddenException(
                "Only the requesting tutor can cancel this time-off request",
                code="NOT_REQUEST_OWNER",
            )
        if request.status != TimeOffStatus.PENDING.value:
            raise InvalidStateTransitionException("time-off request", request.status, "cancel")

        with self.transaction():
            self.repository.delete(request_id)
        self.logger.info(f"Time-off request {request_id} cancelled by tutor {tutor_id}")

    @BaseService.measure_operation("list_time_off_requests")
    def list_requests(
        self, tutor_id: Optional[str] = None, status: Optional[TimeOffStatus] = None
    ) -> List[TimeOffRequest]:
        return self.repository.list_requests(tutor_id=tutor_id, status=status)
