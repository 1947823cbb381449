# backend/classbook/schemas/class_template.py
"""Schemas for creating and reading recurring class templates."""

from datetime import datetime
from typing import List, Optional

from pydantic import AwareDatetime, Field, field_validator, model_validator

from ..core.enums import ClassStatus, ParticipantStatus, RecurrenceFrequency
from ._strict_base import StrictModel, StrictRequestModel
from .occurrence import ParticipantResponse


class TemplateParticipantIn(StrictRequestModel):
    student_id: str = Field(..., min_length=1, max_length=26)
    status: ParticipantStatus = ParticipantStatus.PENDING


class ClassTemplateCreate(StrictRequestModel):
    """
    New recurring class.

    Exactly one of ``recurrence_end``, ``occurrence_count`` or
    ``is_infinite`` must be given.
    """

    anchor_start: AwareDatetime
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    timezone: str = Field(default="UTC", max_length=64)
    frequency: RecurrenceFrequency
    recurrence_end: Optional[AwareDatetime] = None
    occurrence_count: Optional[int] = Field(default=None, ge=1)
    is_infinite: bool = False
    service_id: Optional[str] = Field(default=None, max_length=26)
    is_group_class: bool = False
    is_experimental: bool = False
    notes: Optional[str] = Field(default=None, max_length=2000)
    status: ClassStatus = ClassStatus.CONFIRMED
    participants: List[TemplateParticipantIn] = Field(default_factory=list)

    @field_validator("participants")
    @classmethod
    def unique_students(cls, value: List[TemplateParticipantIn]) -> List[TemplateParticipantIn]:
        ids = [p.student_id for p in value]
        if len(ids) != len(set(ids)):
            raise ValueError("Each student can only be added once")
        return value

    @model_validator(mode="after")
    def single_termination_mode(self) -> "ClassTemplateCreate":
        modes = sum(
            [self.recurrence_end is not None, self.occurrence_count is not None, self.is_infinite]
        )
        if modes != 1:
            raise ValueError(
                "Set exactly one of recurrence_end, occurrence_count or is_infinite"
            )
        if self.recurrence_end is not None and self.recurrence_end < self.anchor_start:
            raise ValueError("recurrence_end must not precede anchor_start")
        return self


class EndRecurrenceRequest(StrictRequestModel):
    recurrence_end: AwareDatetime


class ClassTemplateResponse(StrictModel):
    id: str
    teacher_id: str
    service_id: Optional[str] = None
    anchor_start: datetime
    duration_minutes: int
    timezone: str
    frequency: str
    recurrence_end: Optional[datetime] = None
    occurrence_count: Optional[int] = None
    is_infinite: bool
    is_group_class: bool
    is_experimental: bool
    notes: Optional[str] = None
    status: str
    participants: List[ParticipantResponse]
