# backend/classbook/routes/v1/availability.py
import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_availability_service, get_current_user
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    OpenSlotsResponse,
    SlotResponse,
)
from ...services.availability_service import AvailabilityService
from ...services.template_expander import bounded_window
from .common import handle_domain_exception

router = APIRouter(tags=["availability-v1"])


@router.post("/availability/check", response_model=AvailabilityCheckResponse)
async def check_availability(
    payload: AvailabilityCheckRequest,
    current_user: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityCheckResponse:
    try:
        result = await asyncio.to_thread(
            availability_service.check_slot,
            payload.teacher_id,
            payload.start,
            payload.duration_minutes,
        )
    except DomainException as e:
        handle_domain_exception(e)
    return AvailabilityCheckResponse(
        available=result.available,
        reason=result.reason,
        detail=result.detail,
        conflict_start=result.conflict_start,
        conflict_end=result.conflict_end,
    )


@router.get("/availability/{teacher_id}/slots", response_model=OpenSlotsResponse)
async def list_open_slots(
    teacher_id: str,
    start: datetime = Query(...),
    end: datetime = Query(...),
    duration_minutes: int = Query(60, gt=0, le=24 * 60),
    current_user: User = Depends(get_current_user),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> OpenSlotsResponse:
    """Bookable slots for a teacher inside the requested window."""
    try:
        window = bounded_window(start, end)
        slots = await asyncio.to_thread(
            availability_service.list_open_slots, teacher_id, window, duration_minutes
        )
    except DomainException as e:
        handle_domain_exception(e)
    return OpenSlotsResponse(
        teacher_id=teacher_id,
        duration_minutes=duration_minutes,
        slots=[SlotResponse(start=s.start, end=s.end) for s in slots],
    )
