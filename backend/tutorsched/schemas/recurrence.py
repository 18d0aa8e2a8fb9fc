# backend/tutorsched/schemas/recurrence.py
"""Recurrence generation schemas."""

from typing import List, Optional

from pydantic import Field

from ..core.constants import MAX_HORIZON_MONTHS, MIN_HORIZON_MONTHS
from ._strict_base import StrictModel, StrictRequestModel


class GenerateOccurrencesRequest(StrictRequestModel):
    horizon_months: Optional[int] = Field(
        None,
        ge=MIN_HORIZON_MONTHS,
        le=MAX_HORIZON_MONTHS,
        description="Overrides the pattern's own horizon for this call",
    )


class GenerateOccurrencesResponse(StrictModel):
    pattern_id: str
    created_ids: List[str]
    created_count: int


class SweepError(StrictModel):
    item_id: str
    error: str


class SweepReport(StrictModel):
    """Outcome of a batch sweep; one failed item never aborts the batch."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    created: int = 0
    errors: List[SweepError] = Field(default_factory=list)
    stopped_early: bool = False
