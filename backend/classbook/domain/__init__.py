"""Domain value objects shared by the scheduling services."""

from .occurrence import (
    ClassRef,
    MaterializedOccurrence,
    Occurrence,
    OccurrenceKey,
    OccurrenceRef,
    ParticipantSnapshot,
    VirtualOccurrence,
    Window,
)
from .recurrence import RecurrenceRule

__all__ = [
    "ClassRef",
    "MaterializedOccurrence",
    "Occurrence",
    "OccurrenceKey",
    "OccurrenceRef",
    "ParticipantSnapshot",
    "RecurrenceRule",
    "VirtualOccurrence",
    "Window",
]
