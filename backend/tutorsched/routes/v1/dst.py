# backend/tutorsched/routes/v1/dst.py
"""
DST routes - API v1

Endpoints:
    GET /transitions?timezone=&year=   → Offset transitions of a zone in a year
    GET /info?timezone=                → Current offset and nearest transitions
    POST /reanchor                     → Re-anchor occurrences for a transition
    POST /check                        → Run the periodic DST check now
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_dst_service
from ...core.exceptions import DomainException
from ...schemas.dst import (
    DSTCheckSummary,
    DSTInfo,
    DSTTransition,
    ReanchorRequest,
    ReanchorResponse,
)
from ...services.dst_service import DSTService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dst-v1"])


@router.get("/transitions", response_model=List[DSTTransition])
async def list_transitions(
    timezone: str = Query(..., description="IANA timezone name"),
    year: Optional[int] = Query(None, ge=1970, le=2100),
    service: DSTService = Depends(get_dst_service),
) -> List[DSTTransition]:
    target_year = year or service.clock.now().year
    try:
        return await asyncio.to_thread(service.detect_transitions, timezone, target_year)
    except DomainException as e:
        raise e.to_http_exception()


@router.get("/info", response_model=DSTInfo)
async def get_dst_info(
    timezone: str = Query(..., description="IANA timezone name"),
    service: DSTService = Depends(get_dst_service),
) -> DSTInfo:
    try:
        return await asyncio.to_thread(service.get_dst_info, timezone)
    except DomainException as e:
        raise e.to_http_exception()


@router.post("/reanchor", response_model=ReanchorResponse)
async def reanchor_for_transition(
    payload: ReanchorRequest,
    service: DSTService = Depends(get_dst_service),
) -> ReanchorResponse:
    try:
        adjusted = await asyncio.to_thread(service.reanchor, payload.timezone, payload.transition)
    except DomainException as e:
        raise e.to_http_exception()
    return ReanchorResponse(timezone=payload.timezone, adjusted=adjusted)


@router.post("/check", response_model=DSTCheckSummary)
async def run_dst_check(service: DSTService = Depends(get_dst_service)) -> DSTCheckSummary:
    try:
        return await asyncio.to_thread(service.perform_dst_check)
    except DomainException as e:
        raise e.to_http_exception()
