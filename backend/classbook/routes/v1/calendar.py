# backend/classbook/routes/v1/calendar.py
import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from ...api.dependencies import get_calendar_service, get_current_user
from ...core.enums import RoleName
from ...core.exceptions import DomainException
from ...models.user import User
from ...schemas.occurrence import OccurrenceListResponse, OccurrenceResponse
from ...services.calendar_service import CalendarService
from ...services.template_expander import bounded_window
from .common import handle_domain_exception

router = APIRouter(tags=["calendar-v1"])


@router.get("/calendar", response_model=OccurrenceListResponse)
async def get_calendar(
    start: datetime = Query(...),
    end: datetime = Query(...),
    current_user: User = Depends(get_current_user),
    calendar_service: CalendarService = Depends(get_calendar_service),
) -> OccurrenceListResponse:
    """The caller's calendar: teachers see what they teach, students what they attend."""
    try:
        window = bounded_window(start, end)
        if current_user.role == RoleName.TEACHER.value:
            occurrences = await asyncio.to_thread(
                calendar_service.list_for_teacher, current_user.id, window
            )
        else:
            occurrences = await asyncio.to_thread(
                calendar_service.list_for_student, current_user.id, window
            )
    except DomainException as e:
        handle_domain_exception(e)
    return OccurrenceListResponse(
        start=window.start,
        end=window.end,
        occurrences=[OccurrenceResponse.from_domain(o) for o in occurrences],
    )
