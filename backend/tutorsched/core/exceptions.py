# backend/tutorsched/core/exceptions.py
"""
Domain-specific exceptions for the scheduling engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.

A teacher simply not being free is never an exception: availability
checks return structured results so callers can offer alternatives.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised for malformed input such as an empty or inverted time range."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a teacher, pattern or occurrence does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class UpstreamUnavailableException(DomainException):
    """Raised when persistence or notification dependencies fail."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# Specific business exceptions


class InvalidTimeRangeException(ValidationException):
    """Raised when end <= start."""

    def __init__(self, start: Any, end: Any):
        super().__init__(
            message="End time must be after start time",
            code="INVALID_TIME_RANGE",
            details={"start": str(start), "end": str(end)},
        )


class SlotOverlapException(ConflictException):
    """Raised when a weekly slot overlaps an existing active slot on the same day."""

    def __init__(self, day_of_week: int, new_range: str, conflicting_range: str, conflicting_id: str):
        super().__init__(
            message=(
                f"Overlapping slot on day {day_of_week}: {new_range} conflicts with {conflicting_range}"
            ),
            code="SLOT_OVERLAP",
            details={
                "day_of_week": day_of_week,
                "new_slot": new_range,
                "conflicting_slot": conflicting_range,
                "conflicting_slot_id": conflicting_id,
            },
        )


class UnknownTimezoneException(ValidationException):
    """Raised when an IANA timezone name cannot be resolved."""

    def __init__(self, timezone_name: str):
        super().__init__(
            message=f"Unknown timezone: {timezone_name}",
            code="UNKNOWN_TIMEZONE",
            details={"timezone": timezone_name},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
