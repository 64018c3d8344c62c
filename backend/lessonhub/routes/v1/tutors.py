# backend/lessonhub/routes/v1/tutors.py
"""
Tutor matching routes - API v1

Endpoints:
    GET /matching               → Tutors of a subject classified for a trial start
    GET /next-available-dates   → Upcoming days with free slots for a subject
"""

import asyncio
from datetime import date, datetime
import logging
from typing import List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ...api.dependencies.services import get_tutor_matching_service
from ...core.exceptions import DomainException
from ...schemas.tutor_matching import NextAvailableDate, SmartTutorsResponse
from ...services.tutor_matching_service import TutorMatchingService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tutors-v1"])


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("/matching", response_model=SmartTutorsResponse)
async def find_smart_available_tutors(
    subject_id: str = Query(..., min_length=1),
    preferred_start: datetime = Query(..., description="Start of the trial booking"),
    service: TutorMatchingService = Depends(get_tutor_matching_service),
) -> SmartTutorsResponse:
    try:
        return await asyncio.to_thread(
            service.find_smart_available_tutors, subject_id, preferred_start
        )
    except DomainException as exc:
        handle_domain_exception(exc)


@router.get("/next-available-dates", response_model=List[NextAvailableDate])
async def find_next_available_dates(
    subject_id: str = Query(..., min_length=1),
    exclude_date: Optional[date] = Query(None),
    service: TutorMatchingService = Depends(get_tutor_matching_service),
) -> List[NextAvailableDate]:
    try:
        return await asyncio.to_thread(
            service.find_next_available_dates, subject_id, exclude_date
        )
    except DomainException as exc:
        handle_domain_exception(exc)
