"""Pydantic schemas for the scheduling engine."""

from .availability import (
    AvailabilityCheckRequest,
    AvailabilityResult,
    ConflictDetails,
    FreeSegmentsRequest,
    FreeSegmentsResponse,
)
from .dst import DSTInfo, DSTTransition, ReanchorReport, ReanchorRequest, ReanchorResponse
from .recurrence import GenerateOccurrencesRequest, GenerateOccurrencesResponse, SweepReport
from .search import TeacherSearchRequest, TeacherSearchResult

__all__ = [
    "AvailabilityCheckRequest",
    "AvailabilityResult",
    "ConflictDetails",
    "DSTInfo",
    "DSTTransition",
    "FreeSegmentsRequest",
    "FreeSegmentsResponse",
    "GenerateOccurrencesRequest",
    "GenerateOccurrencesResponse",
    "ReanchorReport",
    "ReanchorRequest",
    "ReanchorResponse",
    "SweepReport",
    "TeacherSearchRequest",
    "TeacherSearchResult",
]
