# backend/classbook/schemas/occurrence.py
"""
Occurrence schemas.

Requests point at an occurrence with a discriminated union: ``kind`` is
``virtual`` (template id plus start) or ``materialized`` (class id).
Responses carry the same tag so clients never parse identifiers.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import AwareDatetime, Field

from ..core.enums import TriggerReason
from ..domain.occurrence import (
    ClassRef,
    MaterializedOccurrence,
    Occurrence,
    OccurrenceKey,
    VirtualOccurrence,
)
from ._strict_base import StrictModel, StrictRequestModel


class VirtualOccurrenceRef(StrictRequestModel):
    kind: Literal["virtual"] = "virtual"
    template_id: str = Field(..., min_length=1, max_length=26)
    occurrence_start: AwareDatetime

    def to_domain(self) -> OccurrenceKey:
        return OccurrenceKey.of(self.template_id, self.occurrence_start)


class MaterializedOccurrenceRef(StrictRequestModel):
    kind: Literal["materialized"] = "materialized"
    class_id: str = Field(..., min_length=1, max_length=26)

    def to_domain(self) -> ClassRef:
        return ClassRef(self.class_id)


OccurrenceRefPayload = Annotated[
    Union[VirtualOccurrenceRef, MaterializedOccurrenceRef],
    Field(discriminator="kind"),
]


class MaterializeOccurrenceRequest(StrictRequestModel):
    template_id: str = Field(..., min_length=1, max_length=26)
    occurrence_start: AwareDatetime
    trigger_reason: TriggerReason = TriggerReason.STATUS_CHANGE


class ParticipantResponse(StrictModel):
    student_id: str
    status: str


class MaterializeOccurrenceResponse(StrictModel):
    materialized_class_id: str
    template_id: str
    occurrence_start: datetime
    status: str
    participants: List[ParticipantResponse]
    outcome: Literal["created", "existing", "concurrent"]


class OccurrenceResponse(StrictModel):
    kind: Literal["virtual", "materialized"]
    class_id: Optional[str] = None
    template_id: Optional[str] = None
    start: datetime
    end: datetime
    teacher_id: str
    duration_minutes: int
    status: str
    participants: List[ParticipantResponse]
    service_id: Optional[str] = None
    is_group_class: bool = False
    is_experimental: bool = False
    notes: Optional[str] = None

    @classmethod
    def from_domain(cls, occurrence: Occurrence) -> "OccurrenceResponse":
        participants = [
            ParticipantResponse(student_id=p.student_id, status=p.status)
            for p in occurrence.participants
        ]
        common = dict(
            start=occurrence.start,
            end=occurrence.end,
            teacher_id=occurrence.teacher_id,
            duration_minutes=occurrence.duration_minutes,
            status=occurrence.status,
            participants=participants,
            service_id=occurrence.service_id,
            is_group_class=occurrence.is_group_class,
            is_experimental=occurrence.is_experimental,
            notes=occurrence.notes,
        )
        if isinstance(occurrence, VirtualOccurrence):
            return cls(kind="virtual", template_id=occurrence.template_id, **common)
        if isinstance(occurrence, MaterializedOccurrence):
            return cls(
                kind="materialized",
                class_id=occurrence.class_id,
                template_id=occurrence.template_id,
                **common,
            )
        raise TypeError(f"Unsupported occurrence variant: {type(occurrence).__name__}")


class OccurrenceListResponse(StrictModel):
    start: datetime
    end: datetime
    occurrences: List[OccurrenceResponse]
