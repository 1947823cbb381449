# backend/classbook/services/template_expander.py
"""
Template expansion.

Projects a ClassTemplate into its concrete occurrences for a window without
touching the store. Every occurrence start is computed from the anchor and
its index, so results never drift and repeated expansion of the same
template yields equal values.

Recurrence steps are taken on the template's wall clock (its IANA timezone)
and then converted to UTC, so "every Tuesday at 10:00" stays at 10:00 local
across DST changes. For UTC templates weekly occurrence k starts exactly at
``anchor + 7k days``.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Iterator, Optional, Tuple

from ..core.config import settings
from ..core.exceptions import ValidationException
from ..core.timezone_utils import ensure_utc, get_timezone, localize_wall_clock, to_local
from ..domain.occurrence import OccurrenceKey, ParticipantSnapshot, VirtualOccurrence, Window
from ..domain.recurrence import RecurrenceRule

if TYPE_CHECKING:
    from ..models.class_template import ClassTemplate

NOT_ALIGNED = "not_aligned"
BEYOND_SERIES_END = "beyond_series_end"

# Indices probed around an estimate; covers DST offsets and monthly clamping
_PROBE_SPAN = 3


@dataclass(frozen=True)
class OccurrenceLocation:
    """Result of re-deriving one occurrence from its template."""

    occurrence: Optional[VirtualOccurrence] = None
    index: Optional[int] = None
    reason: Optional[str] = None
    expired_at: Optional[datetime] = None

    @property
    def found(self) -> bool:
        return self.occurrence is not None


def _add_months(wall: datetime, months: int) -> datetime:
    month_index = wall.month - 1 + months
    year = wall.year + month_index // 12
    month = month_index % 12 + 1
    day = min(wall.day, calendar.monthrange(year, month)[1])
    return wall.replace(year=year, month=month, day=day)


def _wall_anchor(template: "ClassTemplate"):
    tz = get_timezone(template.timezone)
    return tz, to_local(template.anchor_start, tz).replace(tzinfo=None)


def _start_at(template: "ClassTemplate", rule: RecurrenceRule, index: int) -> datetime:
    anchor = ensure_utc(template.anchor_start)
    if index == 0:
        return anchor
    tz, wall = _wall_anchor(template)
    if rule.is_monthly:
        naive = _add_months(wall, index)
    else:
        naive = wall + rule.step * index
    return localize_wall_clock(naive, tz)


def _estimate_index(template: "ClassTemplate", rule: RecurrenceRule, instant: datetime) -> int:
    """Index at or just below the first occurrence starting at ``instant``."""
    anchor = ensure_utc(template.anchor_start)
    if instant <= anchor:
        return 0
    if rule.is_monthly:
        tz, wall = _wall_anchor(template)
        local = to_local(instant, tz)
        months = (local.year - wall.year) * 12 + (local.month - wall.month)
        return max(0, months - 1)
    elapsed = (instant - anchor).total_seconds()
    return max(0, int(elapsed // rule.step.total_seconds()) - 1)


def occurrence_start_at(template: "ClassTemplate", index: int) -> datetime:
    """UTC start of the occurrence with the given zero-based index."""
    if index < 0:
        raise ValueError("Occurrence index must be non-negative")
    return _start_at(template, template.recurrence_rule, index)


def expires_at(template: "ClassTemplate") -> Optional[datetime]:
    """
    Latest instant an occurrence may start at, or None for infinite series.

    Date-bounded series expire at ``recurrence_end``; count-bounded series at
    the start of their last occurrence.
    """
    rule = template.recurrence_rule
    if rule.end is not None:
        return ensure_utc(rule.end)
    if rule.count is not None:
        return occurrence_start_at(template, rule.count - 1)
    return None


def snapshot_participants(template: "ClassTemplate") -> Tuple[ParticipantSnapshot, ...]:
    return tuple(
        sorted(ParticipantSnapshot(p.student_id, p.status) for p in template.participants)
    )


def build_virtual_occurrence(
    template: "ClassTemplate",
    start: datetime,
    participants: Optional[Tuple[ParticipantSnapshot, ...]] = None,
) -> VirtualOccurrence:
    key = OccurrenceKey.of(template.id, start)
    return VirtualOccurrence(
        key=key,
        end=key.start + template.duration,
        teacher_id=template.teacher_id,
        duration_minutes=template.duration_minutes,
        status=template.status,
        participants=participants if participants is not None else snapshot_participants(template),
        service_id=template.service_id,
        is_group_class=bool(template.is_group_class),
        is_experimental=bool(template.is_experimental),
        notes=template.notes,
    )


def expand(template: "ClassTemplate", window: Window) -> Iterator[VirtualOccurrence]:
    """
    Lazily yield the template's occurrences starting inside ``window``.

    Stops at the window end, after the recurrence end date, or once the
    occurrence count is exhausted, whichever comes first. With an unbounded
    window and an infinite template the generator never ends; callers slice.
    Past occurrences are yielded like any other.
    """
    rule = template.recurrence_rule
    participants = snapshot_participants(template)
    end = ensure_utc(rule.end) if rule.end is not None else None
    index = _estimate_index(template, rule, window.start)

    while rule.count is None or index < rule.count:
        start = _start_at(template, rule, index)
        if end is not None and start > end:
            return
        if window.end is not None and start >= window.end:
            return
        if start >= window.start:
            yield build_virtual_occurrence(template, start, participants)
        index += 1


def locate_occurrence(template: "ClassTemplate", start: datetime) -> OccurrenceLocation:
    """
    Re-derive the occurrence starting at ``start`` or report why there is none.

    The series end is checked before alignment: a start after the end is
    ``beyond_series_end`` whether or not it lands on the recurrence.
    """
    start = ensure_utc(start)
    rule = template.recurrence_rule

    expiry = expires_at(template)
    if expiry is not None and start > expiry:
        return OccurrenceLocation(reason=BEYOND_SERIES_END, expired_at=expiry)

    if start < ensure_utc(template.anchor_start):
        return OccurrenceLocation(reason=NOT_ALIGNED)

    first = _estimate_index(template, rule, start)
    for index in range(first, first + _PROBE_SPAN):
        candidate = occurrence_start_at(template, index)
        if candidate == start:
            return OccurrenceLocation(
                occurrence=build_virtual_occurrence(template, candidate), index=index
            )
        if candidate > start:
            break
    return OccurrenceLocation(reason=NOT_ALIGNED)


def bounded_window(start: datetime, end: datetime) -> Window:
    """Window for a listing request, capped at ``max_expansion_window_days``."""
    try:
        window = Window(start=start, end=end)
    except ValueError as exc:
        raise ValidationException(
            message="Requested range must end after it starts and carry a timezone",
            code="INVALID_WINDOW",
        ) from exc
    if window.end - window.start > timedelta(days=settings.max_expansion_window_days):
        raise ValidationException(
            message=f"Requested range may not exceed {settings.max_expansion_window_days} days",
            code="WINDOW_TOO_LARGE",
            details={"max_days": settings.max_expansion_window_days},
        )
    return window
