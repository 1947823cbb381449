# backend/classbook/schemas/availability.py
from datetime import datetime
from typing import List, Optional

from pydantic import AwareDatetime, Field

from ._strict_base import StrictModel, StrictRequestModel


class AvailabilityCheckRequest(StrictRequestModel):
    teacher_id: str = Field(..., min_length=1, max_length=26)
    start: AwareDatetime
    duration_minutes: int = Field(..., gt=0, le=24 * 60)


class AvailabilityCheckResponse(StrictModel):
    available: bool
    reason: Optional[str] = None
    detail: Optional[str] = None
    conflict_start: Optional[datetime] = None
    conflict_end: Optional[datetime] = None


class SlotResponse(StrictModel):
    start: datetime
    end: datetime


class OpenSlotsResponse(StrictModel):
    teacher_id: str
    duration_minutes: int
    slots: List[SlotResponse]
