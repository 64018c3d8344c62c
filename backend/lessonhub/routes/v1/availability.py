# backend/lessonhub/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints:
    POST   /check                        → Full conflict report for a proposed lesson
    POST   /alternatives                 → Ranked alternative tutors for a time range
    GET    /tutors/{tutor_id}/windows    → Weekly windows of a tutor
    POST   /tutors/{tutor_id}/windows    → Add a weekly window
    PATCH  /windows/{window_id}          → Change a window
    DELETE /windows/{window_id}          → Remove a window
"""

import asyncio
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from ...api.dependencies.services import (
    get_availability_check_service,
    get_availability_window_service,
)
from ...core.enums import Weekday
from ...core.exceptions import DomainException
from ...schemas.availability_check import (
    AlternativeTutorCandidate,
    AlternativeTutorsRequest,
    AvailabilityCheckRequest,
    AvailabilityCheckResult,
)
from ...schemas.availability_window import (
    AvailabilityWindowCreate,
    AvailabilityWindowResponse,
    AvailabilityWindowUpdate,
)
from ...services.availability_check_service import AvailabilityCheckService
from ...services.availability_window_service import AvailabilityWindowService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["availability-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("/check", response_model=AvailabilityCheckResult)
async def check_availability(
    payload: AvailabilityCheckRequest,
    service: AvailabilityCheckService = Depends(get_availability_check_service),
) -> AvailabilityCheckResult:
    """
    Check a proposed lesson against weekly availability, the tutor's lessons,
    approved time off and the students' lessons.

    Sub-check failures show up as conflicts, so this only fails on bad input.
    """
    return await asyncio.to_thread(
        service.perform_full_availability_check,
        payload.tutor_id,
        payload.start_time,
        payload.end_time,
        payload.student_ids,
        payload.exclude_lesson_id,
        payload.include_alternatives,
    )


@router.post("/alternatives", response_model=List[AlternativeTutorCandidate])
async def find_alternatives(
    payload: AlternativeTutorsRequest,
    service: AvailabilityCheckService = Depends(get_availability_check_service),
) -> List[AlternativeTutorCandidate]:
    try:
        return await asyncio.to_thread(
            service.find_alternative_tutors,
            payload.original_tutor_id,
            payload.start_time,
            payload.end_time,
            payload.student_ids,
        )
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/tutors/{tutor_id}/windows", response_model=List[AvailabilityWindowResponse])
async def list_windows(
    tutor_id: str,
    day_of_week: Optional[Weekday] = Query(None),
    service: AvailabilityWindowService = Depends(get_availability_window_service),
) -> List[AvailabilityWindowResponse]:
    try:
        windows = await asyncio.to_thread(service.list_windows, tutor_id, day_of_week)
    except DomainException as exc:
        handle_domain_exception(exc)
    return [AvailabilityWindowResponse.model_validate(window) for window in windows]


@router.post(
    "/tutors/{tutor_id}/windows",
    response_model=AvailabilityWindowResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_window(
    tutor_id: str,
    payload: AvailabilityWindowCreate,
    service: AvailabilityWindowService = Depends(get_availability_window_service),
) -> AvailabilityWindowResponse:
    try:
        window = await asyncio.to_thread(
            service.create_window,
            tutor_id,
            payload.day_of_week,
            payload.start_time,
            payload.end_time,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return AvailabilityWindowResponse.model_validate(window)


@router.patch("/windows/{window_id}", response_model=AvailabilityWindowResponse)
async def update_window(
    window_id: str,
    payload: AvailabilityWindowUpdate,
    service: AvailabilityWindowService = Depends(get_availability_window_service),
) -> AvailabilityWindowResponse:
    try:
        window = await asyncio.to_thread(
            service.update_window,
            window_id,
            payload.start_time,
            payload.end_time,
            payload.day_of_week,
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return AvailabilityWindowResponse.model_validate(window)


@router.delete("/windows/{window_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_window(
    window_id: str,
    service: AvailabilityWindowService = Depends(get_availability_window_service),
) -> Response:
    try:
        await asyncio.to_thread(service.delete_window, window_id)
    except DomainException as exc:
        handle_domain_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
