# backend/tutorsched/routes/v1/teachers.py
"""
Teacher search routes - API v1

Endpoints:
    POST /search   → Teachers free for the requested days and windows
"""

import asyncio
import logging

from fastapi import APIRouter, Depends

from ...api.dependencies import get_teacher_search_service
from ...core.exceptions import DomainException
from ...schemas.search import SearchTeachersRequest, TeacherSearchResult
from ...services.teacher_search_service import TeacherSearchService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["teachers-v1"])


@router.post("/search", response_model=TeacherSearchResult)
async def search_teachers(
    payload: SearchTeachersRequest,
    service: TeacherSearchService = Depends(get_teacher_search_service),
) -> TeacherSearchResult:
    """
    Search for teachers with free time.

    Failures other than an unknown timezone come back as an empty result
    whose ``message`` explains what went wrong.
    """
    try:
        return await asyncio.to_thread(service.search, payload.request, payload.display_timezone)
    except DomainException as e:
        raise e.to_http_exception()
