# backend/classbook/domain/occurrence.py
"""
Occurrence identity and the Occurrence sum type.

An occurrence of a template is identified by ``(template_id, start)`` where
``start`` is an absolute UTC instant. Before anything durable exists the
occurrence is a ``VirtualOccurrence`` projected from the template; once an
action needs a durable record it becomes a ``MaterializedOccurrence`` backed
by a row in ``classes``. Code that handles either dispatches on the variant.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Literal, Optional, Tuple, Union

from ..core.timezone_utils import ensure_utc

if TYPE_CHECKING:
    from ..models.materialized_class import MaterializedClass


@dataclass(frozen=True, order=True)
class OccurrenceKey:
    """Stable identity of one occurrence of one template."""

    template_id: str
    start: datetime

    @classmethod
    def of(cls, template_id: str, start: datetime) -> "OccurrenceKey":
        """Build a key, normalizing ``start`` to UTC. Naive datetimes are rejected."""
        return cls(template_id=template_id, start=ensure_utc(start))


@dataclass(frozen=True)
class ClassRef:
    """Reference to an already materialized (or one-off) class."""

    class_id: str


# What callers may point an action at
OccurrenceRef = Union[OccurrenceKey, ClassRef]


@dataclass(frozen=True, order=True)
class ParticipantSnapshot:
    student_id: str
    status: str


@dataclass(frozen=True)
class Window:
    """Half-open window ``[start, end)``; ``end=None`` means unbounded."""

    start: datetime
    end: Optional[datetime] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        if self.end is not None:
            end = ensure_utc(self.end)
            if end <= self.start:
                raise ValueError("Window end must be after its start")
            object.__setattr__(self, "end", end)

    def contains(self, instant: datetime) -> bool:
        if instant < self.start:
            return False
        return self.end is None or instant < self.end


@dataclass(frozen=True)
class VirtualOccurrence:
    """A projected, never persisted occurrence of a template."""

    key: OccurrenceKey
    end: datetime
    teacher_id: str
    duration_minutes: int
    status: str
    participants: Tuple[ParticipantSnapshot, ...]
    service_id: Optional[str] = None
    is_group_class: bool = False
    is_experimental: bool = False
    notes: Optional[str] = None

    kind: Literal["virtual"] = "virtual"

    @property
    def template_id(self) -> str:
        return self.key.template_id

    @property
    def start(self) -> datetime:
        return self.key.start


@dataclass(frozen=True)
class MaterializedOccurrence:
    """A durable class, either materialized from a template or created one-off."""

    class_id: str
    template_id: Optional[str]
    start: datetime
    end: datetime
    teacher_id: str
    duration_minutes: int
    status: str
    participants: Tuple[ParticipantSnapshot, ...]
    service_id: Optional[str] = None
    is_group_class: bool = False
    is_experimental: bool = False
    notes: Optional[str] = None

    kind: Literal["materialized"] = "materialized"

    @property
    def key(self) -> Optional[OccurrenceKey]:
        if self.template_id is None:
            return None
        return OccurrenceKey(self.template_id, self.start)

    @classmethod
    def from_model(cls, row: "MaterializedClass") -> "MaterializedOccurrence":
        return cls(
            class_id=row.id,
            template_id=row.template_id,
            start=row.occurrence_start,
            end=row.occurrence_end,
            teacher_id=row.teacher_id,
            duration_minutes=row.duration_minutes,
            status=row.status,
            participants=tuple(
                sorted(ParticipantSnapshot(p.student_id, p.status) for p in row.participants)
            ),
            service_id=row.service_id,
            is_group_class=bool(row.is_group_class),
            is_experimental=bool(row.is_experimental),
            notes=row.notes,
        )


Occurrence = Union[VirtualOccurrence, MaterializedOccurrence]


def occurrence_sort_key(occurrence: Occurrence) -> Tuple[datetime, str]:
    if isinstance(occurrence, VirtualOccurrence):
        return (occurrence.start, occurrence.template_id)
    return (occurrence.start, occurrence.template_id or occurrence.class_id)
