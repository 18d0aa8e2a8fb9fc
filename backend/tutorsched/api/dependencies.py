# backend/tutorsched/api/dependencies.py
"""
Service layer dependencies for dependency injection.

Every service is built per request over the request's session and the
injected clock; tests override ``get_db`` and ``get_clock``.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..core.clock import Clock, SystemClock
from ..database import SessionLocal, get_db
from ..services.availability_engine import AvailabilityEngine
from ..services.dst_service import DSTService
from ..services.recurrence_generator import RecurrenceGenerator
from ..services.slot_management_service import SlotManagementService
from ..services.teacher_search_service import TeacherSearchService

__all__ = [
    "get_db",
    "get_clock",
    "get_availability_engine",
    "get_slot_management_service",
    "get_recurrence_generator",
    "get_dst_service",
    "get_teacher_search_service",
]


def get_clock() -> Clock:
    return SystemClock()


def get_availability_engine(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AvailabilityEngine:
    return AvailabilityEngine(db, clock=clock)


def get_slot_management_service(db: Session = Depends(get_db)) -> SlotManagementService:
    return SlotManagementService(db)


def get_recurrence_generator(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> RecurrenceGenerator:
    return RecurrenceGenerator(db, clock=clock)


def get_dst_service(db: Session = Depends(get_db), clock: Clock = Depends(get_clock)) -> DSTService:
    return DSTService(db, clock=clock)


def get_teacher_search_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> TeacherSearchService:
    """Search service; parallel evaluation opens its own sessions from SessionLocal."""
    return TeacherSearchService(db, clock=clock, session_factory=SessionLocal)
