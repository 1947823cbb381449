# backend/classbook/services/availability_service.py
"""
Availability Service for classbook

Loads a teacher's availability context from the store and runs the pure
resolver against it. The context includes occurrences of the teacher's
templates that were never materialized, so a recurring class blocks its
slot from the first day it exists.
"""

from datetime import datetime, time, timedelta
import logging
from typing import List, Optional, Set

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.config import settings
from ..core.enums import ACTIVE_PARTICIPANT_STATUSES, RoleName
from ..core.exceptions import NotFoundException
from ..core.timezone_utils import get_timezone, localize_wall_clock, to_local
from ..domain.occurrence import OccurrenceKey, VirtualOccurrence, Window
from ..models.materialized_class import MaterializedClass
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from .availability_resolver import (
    AvailabilityContext,
    AvailabilityResult,
    BlockedInterval,
    Occupier,
    Slot,
    WorkingWindow,
    closing_offset,
    resolve_availability,
)
from .base import BaseService
from .template_expander import expand

logger = logging.getLogger(__name__)


def occupier_from_class(row: MaterializedClass) -> Occupier:
    return Occupier(
        start=row.occurrence_start,
        end=row.occurrence_end,
        status=row.status,
        is_group_class=bool(row.is_group_class),
        active_participants=row.active_participant_count,
        reference=row.id,
    )


def occupier_from_virtual(occurrence: VirtualOccurrence) -> Occupier:
    return Occupier(
        start=occurrence.start,
        end=occurrence.end,
        status=occurrence.status,
        is_group_class=occurrence.is_group_class,
        active_participants=sum(
            1 for p in occurrence.participants if p.status in ACTIVE_PARTICIPANT_STATUSES
        ),
        reference=occurrence.template_id,
    )


class AvailabilityService(BaseService):
    """Store-backed availability checks and open-slot listing."""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.availability_repository = RepositoryFactory.create_availability_repository(db)
        self.class_repository = RepositoryFactory.create_materialized_class_repository(db)
        self.template_repository = RepositoryFactory.create_class_template_repository(db)
        self.user_repository = RepositoryFactory.create_base_repository(db, User)

    def _get_teacher(self, teacher_id: str) -> User:
        teacher = self.user_repository.get_by_id(teacher_id)
        if teacher is None or teacher.role != RoleName.TEACHER.value:
            raise NotFoundException(
                message="Teacher not found",
                code="TEACHER_NOT_FOUND",
                details={"teacher_id": teacher_id},
            )
        return teacher

    def load_context(self, teacher_id: str, start: datetime, end: datetime) -> AvailabilityContext:
        """Collect working hours, blocks and occupying classes around ``[start, end)``."""
        teacher = self._get_teacher(teacher_id)

        working_hours = tuple(
            WorkingWindow(
                day_of_week=row.day_of_week,
                start_time=row.start_time,
                end_time=row.end_time,
                is_active=bool(row.is_active),
            )
            for row in self.availability_repository.get_working_hours(teacher_id)
        )
        blocks = tuple(
            BlockedInterval(start=row.start, end=row.end, title=row.title)
            for row in self.availability_repository.get_blocks_overlapping(teacher_id, start, end)
        )

        materialized = self.class_repository.list_for_teacher_in_range(teacher_id, start, end)
        occupiers = [occupier_from_class(row) for row in materialized]
        materialized_keys: Set[OccurrenceKey] = {
            OccurrenceKey(row.template_id, row.occurrence_start)
            for row in materialized
            if row.template_id is not None
        }

        for template in self.template_repository.list_for_teacher(teacher_id):
            # Widen by the duration so occurrences that started earlier but still run are seen
            window = Window(start=start - template.duration, end=end)
            for occurrence in expand(template, window):
                if occurrence.key in materialized_keys:
                    continue
                if occurrence.end <= start:
                    continue
                occupiers.append(occupier_from_virtual(occurrence))

        return AvailabilityContext(
            timezone=teacher.timezone or "UTC",
            working_hours=working_hours,
            blocks=blocks,
            occupiers=tuple(sorted(occupiers, key=lambda o: o.start)),
        )

    @BaseService.measure_operation("check_slot")
    def check_slot(self, teacher_id: str, start: datetime, duration_minutes: int) -> AvailabilityResult:
        """Resolve one proposed slot against fresh store state."""
        slot = Slot.of(start, duration_minutes)
        context = self.load_context(teacher_id, slot.start, slot.end)
        result = resolve_availability(slot, context, self.clock)
        self.logger.debug(
            "Availability checked",
            extra={"teacher_id": teacher_id, "start": slot.start.isoformat(), "reason": result.reason},
        )
        return result

    @BaseService.measure_operation("list_open_slots")
    def list_open_slots(self, teacher_id: str, window: Window, duration_minutes: int) -> List[Slot]:
        """
        Bookable slots inside working hours, stepping every ``slot_step_minutes``.

        Teachers without configured working hours offer no slots.
        """
        context = self.load_context(teacher_id, window.start, window.end)
        if not context.working_hours:
            return []

        tz = get_timezone(context.timezone)
        step = timedelta(minutes=settings.slot_step_minutes)
        duration = timedelta(minutes=duration_minutes)
        first_day = to_local(window.start, tz).date()
        last_day = to_local(window.end, tz).date()

        slots: List[Slot] = []
        seen: Set[datetime] = set()
        day = first_day
        while day <= last_day:
            for entry in context.working_hours:
                if not entry.is_active or entry.day_of_week != day.weekday():
                    continue
                cursor = datetime.combine(day, entry.start_time)
                closing = datetime.combine(day, time(0)) + closing_offset(entry.end_time)
                while cursor + duration <= closing:
                    start = localize_wall_clock(cursor, tz)
                    cursor += step
                    if start in seen or not window.contains(start):
                        continue
                    slot = Slot.of(start, duration_minutes)
                    if resolve_availability(slot, context, self.clock).available:
                        seen.add(start)
                        slots.append(slot)
            day += timedelta(days=1)

        return sorted(slots, key=lambda s: s.start)
