"""API dependency wiring."""

from .dependencies import (
    get_availability_engine,
    get_clock,
    get_db,
    get_dst_service,
    get_recurrence_generator,
    get_slot_management_service,
    get_teacher_search_service,
)

__all__ = [
    "get_availability_engine",
    "get_clock",
    "get_db",
    "get_dst_service",
    "get_recurrence_generator",
    "get_slot_management_service",
    "get_teacher_search_service",
]
