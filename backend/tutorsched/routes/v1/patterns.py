# backend/tutorsched/routes/v1/patterns.py
"""
Recurring pattern routes - API v1

Endpoints:
    POST /{pattern_id}/generate   → Materialize occurrences up to the horizon
    POST /sweep                   → Generate for every pattern behind its horizon
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends

from ...api.dependencies import get_recurrence_generator
from ...core.exceptions import DomainException
from ...schemas.recurrence import (
    GenerateOccurrencesRequest,
    GenerateOccurrencesResponse,
    SweepReport,
)
from ...services.recurrence_generator import RecurrenceGenerator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["patterns-v1"])


@router.post("/{pattern_id}/generate", response_model=GenerateOccurrencesResponse)
async def generate_occurrences(
    pattern_id: str,
    payload: Optional[GenerateOccurrencesRequest] = Body(None),
    generator: RecurrenceGenerator = Depends(get_recurrence_generator),
) -> GenerateOccurrencesResponse:
    """Idempotent: a second call over the same horizon creates nothing."""
    horizon = payload.horizon_months if payload is not None else None
    try:
        created = await asyncio.to_thread(generator.generate, pattern_id, horizon)
    except DomainException as e:
        raise e.to_http_exception()
    return GenerateOccurrencesResponse(
        pattern_id=pattern_id, created_ids=created, created_count=len(created)
    )


@router.post("/sweep", response_model=SweepReport)
async def run_generation_sweep(
    generator: RecurrenceGenerator = Depends(get_recurrence_generator),
) -> SweepReport:
    try:
        return await asyncio.to_thread(generator.run_sweep)
    except DomainException as e:
        raise e.to_http_exception()
