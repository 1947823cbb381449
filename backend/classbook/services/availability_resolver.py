# backend/classbook/services/availability_resolver.py
"""
Availability resolution for a proposed slot.

Pure function of the slot, the teacher's availability context and the
clock. Intervals are half-open ``[start, end)``: a class ending at 11:00 and
another starting at 11:00 do not overlap. The resolver is safe to call
concurrently and is re-evaluated at write time; a result is never cached.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Optional, Tuple

from ..core.clock import Clock
from ..core.enums import INACTIVE_CLASS_STATUSES
from ..core.timezone_utils import ensure_utc, get_timezone, to_local

IN_PAST = "in_past"
OUTSIDE_WORKING_HOURS = "outside_working_hours"
BLOCKED = "blocked"
OCCUPIED = "occupied"


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", ensure_utc(self.start))
        object.__setattr__(self, "end", ensure_utc(self.end))
        if self.end <= self.start:
            raise ValueError("Slot end must be after its start")

    @classmethod
    def of(cls, start: datetime, duration_minutes: int) -> "Slot":
        return cls(start=start, end=start + timedelta(minutes=duration_minutes))


@dataclass(frozen=True)
class WorkingWindow:
    """Weekly working window; ``day_of_week`` is 0=Monday ... 6=Sunday."""

    day_of_week: int
    start_time: time
    end_time: time
    is_active: bool = True


@dataclass(frozen=True)
class BlockedInterval:
    start: datetime
    end: datetime
    title: Optional[str] = None


@dataclass(frozen=True)
class Occupier:
    """A class holding time on the teacher's calendar, virtual or durable."""

    start: datetime
    end: datetime
    status: str
    is_group_class: bool = False
    active_participants: int = 1
    reference: Optional[str] = None

    @property
    def occupies(self) -> bool:
        if self.status in INACTIVE_CLASS_STATUSES:
            return False
        # An empty group class is an open offer, not a booked slot
        return not (self.is_group_class and self.active_participants == 0)


@dataclass(frozen=True)
class AvailabilityContext:
    timezone: str = "UTC"
    working_hours: Tuple[WorkingWindow, ...] = field(default_factory=tuple)
    blocks: Tuple[BlockedInterval, ...] = field(default_factory=tuple)
    occupiers: Tuple[Occupier, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    detail: Optional[str] = None
    conflict_start: Optional[datetime] = None
    conflict_end: Optional[datetime] = None


def _offset(t: time) -> timedelta:
    return timedelta(hours=t.hour, minutes=t.minute, seconds=t.second)


def closing_offset(end_time: time) -> timedelta:
    """Offset of a working window's end from local midnight; 00:00 closes at end of day."""
    return timedelta(days=1) if end_time == time(0) else _offset(end_time)


def _within_working_hours(slot: Slot, context: AvailabilityContext) -> bool:
    tz = get_timezone(context.timezone)
    local_start = to_local(slot.start, tz).replace(tzinfo=None)
    local_end = to_local(slot.end, tz).replace(tzinfo=None)
    midnight = datetime.combine(local_start.date(), time(0))
    start_offset = local_start - midnight
    end_offset = local_end - midnight
    weekday = local_start.weekday()
    for window in context.working_hours:
        if not window.is_active or window.day_of_week != weekday:
            continue
        if _offset(window.start_time) <= start_offset and end_offset <= closing_offset(window.end_time):
            return True
    return False


def resolve_availability(slot: Slot, context: AvailabilityContext, clock: Clock) -> AvailabilityResult:
    """
    Decide whether ``slot`` can be booked.

    Checks run in a fixed order and the first failure wins: past start,
    working hours (only when the teacher configured any), block-outs, then
    occupying classes.
    """
    if slot.start < clock.now():
        return AvailabilityResult(available=False, reason=IN_PAST)

    if context.working_hours and not _within_working_hours(slot, context):
        return AvailabilityResult(available=False, reason=OUTSIDE_WORKING_HOURS)

    for block in context.blocks:
        if intervals_overlap(slot.start, slot.end, block.start, block.end):
            return AvailabilityResult(
                available=False,
                reason=BLOCKED,
                detail=block.title,
                conflict_start=block.start,
                conflict_end=block.end,
            )

    for occupier in context.occupiers:
        if occupier.occupies and intervals_overlap(slot.start, slot.end, occupier.start, occupier.end):
            return AvailabilityResult(
                available=False,
                reason=OCCUPIED,
                detail=occupier.reference,
                conflict_start=occupier.start,
                conflict_end=occupier.end,
            )

    return AvailabilityResult(available=True)
