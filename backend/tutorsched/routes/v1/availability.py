# backend/tutorsched/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints:
    POST /check                             → Point-in-time bookability
    POST /free-segments                     → Free UTC segments in a window
    GET /{teacher_id}/alternatives          → Suggested bookable windows
    GET /{teacher_id}/compliance            → Weekly minimum check
    POST /slots                             → Create weekly slot
    PATCH /slots/{slot_id}                  → Edit weekly slot
    DELETE /slots/{slot_id}                 → Deactivate weekly slot
    POST /unavailability                    → Create unavailability period
    DELETE /unavailability/{period_id}      → Deactivate unavailability period
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_availability_engine, get_slot_management_service
from ...core.constants import MAX_ALTERNATIVES
from ...core.exceptions import DomainException
from ...schemas.availability import (
    AlternativeSlot,
    AvailabilityCheckRequest,
    AvailabilityResult,
    ComplianceReport,
    FreeSegmentsRequest,
    FreeSegmentsResponse,
    UnavailabilityCreate,
    UnavailabilityResponse,
    WeeklySlotCreate,
    WeeklySlotResponse,
    WeeklySlotUpdate,
)
from ...services.availability_engine import AvailabilityEngine
from ...services.slot_management_service import SlotManagementService

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["availability-v1"])


@router.post("/check", response_model=AvailabilityResult)
async def check_availability(
    payload: AvailabilityCheckRequest,
    engine: AvailabilityEngine = Depends(get_availability_engine),
) -> AvailabilityResult:
    """
    Check whether a teacher can be booked for a UTC window.

    A busy teacher is a normal 200 response with ``available = false``;
    only malformed input, unknown teachers and persistence failures error.
    """
    try:
        return await asyncio.to_thread(
            engine.is_available,
            payload.teacher_id,
            payload.start_utc,
            payload.end_utc,
            payload.exclude_occurrence_id,
        )
    except DomainException as e:
        raise e.to_http_exception()


@router.post("/free-segments", response_model=FreeSegmentsResponse)
async def free_segments(
    payload: FreeSegmentsRequest,
    engine: AvailabilityEngine = Depends(get_availability_engine),
) -> FreeSegmentsResponse:
    try:
        segments = await asyncio.to_thread(
            engine.describe_free_time,
            payload.teacher_id,
            payload.window_start_utc,
            payload.window_end_utc,
            payload.display_timezone,
        )
    except DomainException as e:
        raise e.to_http_exception()
    return FreeSegmentsResponse(
        teacher_id=payload.teacher_id,
        display_timezone=payload.display_timezone,
        segments=segments,
    )


@router.get("/{teacher_id}/alternatives", response_model=List[AlternativeSlot])
async def get_alternatives(
    teacher_id: str,
    duration_minutes: int = Query(60, gt=0, le=24 * 60),
    days: Optional[List[int]] = Query(None, description="Preferred weekdays, 0 = Sunday"),
    look_ahead_days: Optional[int] = Query(None, gt=0, le=60),
    limit: int = Query(MAX_ALTERNATIVES, gt=0, le=50),
    engine: AvailabilityEngine = Depends(get_availability_engine),
) -> List[AlternativeSlot]:
    try:
        return await asyncio.to_thread(
            engine.suggest_alternatives,
            teacher_id,
            duration_minutes,
            preferred_days=days,
            look_ahead_days=look_ahead_days,
            limit=limit,
        )
    except DomainException as e:
        raise e.to_http_exception()


@router.get("/{teacher_id}/compliance", response_model=ComplianceReport)
async def get_compliance(
    teacher_id: str,
    min_days_per_week: int = Query(..., ge=0, le=7),
    min_hours_per_day: float = Query(..., ge=0, le=24),
    engine: AvailabilityEngine = Depends(get_availability_engine),
) -> ComplianceReport:
    try:
        return await asyncio.to_thread(
            engine.check_compliance, teacher_id, min_days_per_week, min_hours_per_day
        )
    except DomainException as e:
        raise e.to_http_exception()


@router.post("/slots", response_model=WeeklySlotResponse, status_code=status.HTTP_201_CREATED)
async def create_slot(
    payload: WeeklySlotCreate,
    service: SlotManagementService = Depends(get_slot_management_service),
) -> WeeklySlotResponse:
    try:
        slot = await asyncio.to_thread(service.create_slot, payload)
    except DomainException as e:
        raise e.to_http_exception()
    return WeeklySlotResponse.model_validate(slot)


@router.patch("/slots/{slot_id}", response_model=WeeklySlotResponse)
async def update_slot(
    slot_id: str,
    payload: WeeklySlotUpdate,
    service: SlotManagementService = Depends(get_slot_management_service),
) -> WeeklySlotResponse:
    try:
        slot = await asyncio.to_thread(service.update_slot, slot_id, payload)
    except DomainException as e:
        raise e.to_http_exception()
    return WeeklySlotResponse.model_validate(slot)


@router.delete("/slots/{slot_id}", response_model=WeeklySlotResponse)
async def deactivate_slot(
    slot_id: str,
    service: SlotManagementService = Depends(get_slot_management_service),
) -> WeeklySlotResponse:
    try:
        slot = await asyncio.to_thread(service.deactivate_slot, slot_id)
    except DomainException as e:
        raise e.to_http_exception()
    return WeeklySlotResponse.model_validate(slot)


@router.post(
    "/unavailability", response_model=UnavailabilityResponse, status_code=status.HTTP_201_CREATED
)
async def create_unavailability(
    payload: UnavailabilityCreate,
    service: SlotManagementService = Depends(get_slot_management_service),
) -> UnavailabilityResponse:
    try:
        period = await asyncio.to_thread(service.create_unavailability, payload)
    except DomainException as e:
        raise e.to_http_exception()
    return UnavailabilityResponse.model_validate(period)


@router.delete("/unavailability/{period_id}", response_model=UnavailabilityResponse)
async def deactivate_unavailability(
    period_id: str,
    service: SlotManagementService = Depends(get_slot_management_service),
) -> UnavailabilityResponse:
    try:
        period = await asyncio.to_thread(service.deactivate_unavailability, period_id)
    except DomainException as e:
        raise e.to_http_exception()
    return UnavailabilityResponse.model_validate(period)
