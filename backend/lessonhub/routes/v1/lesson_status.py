# backend/lessonhub/routes/v1/lesson_status.py
"""
Lesson status routes - API v1

Derived per-lesson flags for list views. Nothing here writes.

Endpoints:
    POST /attendance    → Cancelled/absent flags for a list of lesson ids
    POST /completion    → Completion flags for a list of lesson ids
    GET  /completed     → Ids of lessons that meet the completion policy
"""

import asyncio
from datetime import date
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies.services import get_lesson_status_service
from ...core.exceptions import DomainException
from ...schemas.lesson_status import (
    AttendanceStatusResponse,
    CompletedLessonsResponse,
    LessonCompletionResponse,
    LessonIdsRequest,
)
from ...services.lesson_status_service import LessonStatusService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["lesson-status-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.post("/attendance", response_model=AttendanceStatusResponse)
async def get_attendance_status(
    payload: LessonIdsRequest,
    service: LessonStatusService = Depends(get_lesson_status_service),
) -> AttendanceStatusResponse:
    """Lessons in failed batches are left out; ``failed_batches`` says how many."""
    return await asyncio.to_thread(service.get_attendance_status, payload.lesson_ids)


@router.post("/completion", response_model=LessonCompletionResponse)
async def get_lesson_completion(
    payload: LessonIdsRequest,
    service: LessonStatusService = Depends(get_lesson_status_service),
) -> LessonCompletionResponse:
    return await asyncio.to_thread(service.get_lesson_completion, payload.lesson_ids)


@router.get("/completed", response_model=CompletedLessonsResponse)
async def get_completed_lessons(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    tutor_ids: Optional[List[str]] = Query(None),
    subjects: Optional[List[str]] = Query(None),
    service: LessonStatusService = Depends(get_lesson_status_service),
) -> CompletedLessonsResponse:
    try:
        lesson_ids = await asyncio.to_thread(
            service.get_completed_lessons, date_from, date_to, tutor_ids, subjects
        )
    except DomainException as exc:
        handle_domain_exception(exc)
    return CompletedLessonsResponse(date_from=date_from, date_to=date_to, lesson_ids=lesson_ids)
