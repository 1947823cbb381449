# backend/classbook/domain/recurrence.py
"""Recurrence rule value object."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..core.enums import RecurrenceFrequency
from ..core.exceptions import InvalidRecurrence

WEEKLY_STEP_DAYS = {
    RecurrenceFrequency.WEEKLY: 7,
    RecurrenceFrequency.BIWEEKLY: 14,
}


@dataclass(frozen=True)
class RecurrenceRule:
    """
    How a template repeats and when it stops.

    Exactly one termination mode must be present: an end instant, an
    occurrence count, or ``is_infinite``.
    """

    frequency: RecurrenceFrequency
    end: Optional[datetime] = None
    count: Optional[int] = None
    is_infinite: bool = False

    def __post_init__(self) -> None:
        try:
            frequency = RecurrenceFrequency(self.frequency)
        except ValueError as exc:
            raise InvalidRecurrence(f"unknown frequency {self.frequency!r}") from exc
        object.__setattr__(self, "frequency", frequency)

        modes = sum([self.end is not None, self.count is not None, bool(self.is_infinite)])
        if modes != 1:
            raise InvalidRecurrence(f"expected exactly one termination mode, got {modes}")
        if self.count is not None and self.count < 1:
            raise InvalidRecurrence("occurrence count must be at least 1")
        if self.end is not None and (self.end.tzinfo is None or self.end.utcoffset() is None):
            raise InvalidRecurrence("recurrence end must be timezone-aware")

    @property
    def is_monthly(self) -> bool:
        return self.frequency is RecurrenceFrequency.MONTHLY

    @property
    def step(self) -> Optional[timedelta]:
        """Fixed wall-clock step; None for monthly rules."""
        days = WEEKLY_STEP_DAYS.get(self.frequency)
        return timedelta(days=days) if days else None
