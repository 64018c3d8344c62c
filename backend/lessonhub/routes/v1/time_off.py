# backend/lessonhub/routes/v1/time_off.py
"""
Time-off routes - API v1

Endpoints:
    POST   /requests                                  → Tutor submits a request
    GET    /requests                                  → List requests (filter by tutor/status)
    POST   /requests/{request_id}/review              → Admin approves or rejects
    DELETE /requests/{request_id}?tutor_id=...        → Tutor cancels a pending request
    GET    /conflicts                                 → Lessons a window would affect
    GET    /lessons/{lesson_id}/alternative-tutors    → Replacement tutors for a lesson
    POST   /resolutions                               → Apply reassign/cancel decisions

Acting tutor and admin ids are explicit request fields.
"""

import asyncio
from datetime import date
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies.services import get_time_off_conflict_service, get_time_off_service
from ...core.enums import TimeOffStatus
from ...core.exceptions import DomainException, ValidationException
from ...schemas.availability_check import AlternativeTutorCandidate
from ...schemas.time_off import (
    ResolutionResult,
    ResolveConflictsRequest,
    TimeOffConflictResult,
    TimeOffRequestCreate,
    TimeOffRequestResponse,
    TimeOffReview,
    TimeOffReviewResponse,
)
from ...services.time_off_conflict_service import TimeOffConflictService
from ...services.time_off_service import TimeOffService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["time-off-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post(
    "/requests", response_model=TimeOffRequestResponse, status_code=status.HTTP_201_CREATED
)
async def create_time_off_request(
    payload: TimeOffRequestCreate,
    service: TimeOffService = Depends(get_time_off_service),
) -> TimeOffRequestResponse:
    try:
        request = await asyncio.to_thread(
            service.create_request,
            payload.tutor_id,
            payload.start_date,
            payload.end_date,
            payload.reason,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return TimeOffRequestResponse.model_validate(request)


@router.get("/requests", response_model=List[TimeOffRequestResponse])
async def list_time_off_requests(
    tutor_id: Optional[str] = Query(None),
    request_status: Optional[TimeOffStatus] = Query(None, alias="status"),
    service: TimeOffService = Depends(get_time_off_service),
) -> List[TimeOffRequestResponse]:
    try:
        requests = await asyncio.to_thread(service.list_requests, tutor_id, request_status)
    except DomainException as exc:
        handle_domain_exception(exc)
    return [TimeOffRequestResponse.model_validate(r) for r in requests]


@router.post("/requests/{request_id}/review", response_model=TimeOffReviewResponse)
async def review_time_off_request(
    request_id: str,
    payload: TimeOffReview,
    service: TimeOffService = Depends(get_time_off_service),
) -> TimeOffReviewResponse:
    """
    Approve or reject a pending request.

    On approval the response carries the scheduled lessons the window affects.
    """
    try:
        request, impact = await asyncio.to_thread(
            service.review_request,
            request_id,
            payload.approve,
            payload.admin_user_id,
            payload.admin_notes,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return TimeOffReviewResponse(
        request=TimeOffRequestResponse.model_validate(request), impact=impact
    )


@router.delete("/requests/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_time_off_request(
    request_id: str,
    tutor_id: str = Query(..., min_length=1),
    service: TimeOffService = Depends(get_time_off_service),
) -> Response:
    try:
        await asyncio.to_thread(service.cancel_request, request_id, tutor_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/conflicts", response_model=TimeOffConflictResult)
async def check_time_off_conflicts(
    tutor_id: str = Query(..., min_length=1),
    start_date: date = Query(...),
    end_date: date = Query(...),
    service: TimeOffConflictService = Depends(get_time_off_conflict_service),
) -> TimeOffConflictResult:
    try:
        if end_date < start_date:
            raise ValidationException(
                "End date must be on or after start date", code="INVALID_DATE_RANGE"
            )
        return await asyncio.to_thread(
            service.check_time_off_conflicts, tutor_id, start_date, end_date
        )
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get(
    "/lessons/{lesson_id}/alternative-tutors", response_model=List[AlternativeTutorCandidate]
)
async def get_alternative_tutors(
    lesson_id: str,
    exclude_tutor_id: str = Query(..., min_length=1),
    service: TimeOffConflictService = Depends(get_time_off_conflict_service),
) -> List[AlternativeTutorCandidate]:
    try:
        return await asyncio.to_thread(
            service.get_alternative_tutors_for_lesson, lesson_id, exclude_tutor_id
        )
    except DomainException as exc:
        handle_domain_exception(exc)


@router.post("/resolutions", response_model=List[ResolutionResult])
async def resolve_conflicts(
    payload: ResolveConflictsRequest,
    service: TimeOffConflictService = Depends(get_time_off_conflict_service),
) -> List[ResolutionResult]:
    """
    Apply the admin's decisions in order.

    Each decision commits on its own; the first failing one stops the run and
    its error is returned, with earlier decisions already applied.
    """
    try:
        return await asyncio.to_thread(
            service.resolve_all_conflicts, payload.resolutions, payload.admin_user_id
        )
    except DomainException as exc:
        handle_domain_exception(exc)
