# backend/classbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Every service receives the request's session and the application clock.
Tests override ``get_clock`` to pin "now".
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...core.clock import Clock, system_clock
from ...services.availability_service import AvailabilityService
from ...services.calendar_service import CalendarService
from ...services.cancellation_service import CancellationService
from ...services.materialization_service import MaterializationService
from ...services.template_service import TemplateService
from .database import get_db


def get_clock() -> Clock:
    return system_clock


def get_materialization_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> MaterializationService:
    return MaterializationService(db, clock)


def get_cancellation_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> CancellationService:
    return CancellationService(db, clock)


def get_calendar_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> CalendarService:
    return CalendarService(db, clock)


def get_availability_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> AvailabilityService:
    return AvailabilityService(db, clock)


def get_template_service(
    db: Session = Depends(get_db), clock: Clock = Depends(get_clock)
) -> TemplateService:
    return TemplateService(db, clock)
