# backend/classbook/services/calendar_service.py
"""
Calendar Service for classbook

Builds a teacher's or student's calendar for a window by merging the
virtual occurrences of their templates with the classes already
materialized. A materialized class replaces the virtual occurrence that
has the same (template_id, start) key, so every occurrence appears once.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Set

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..domain.occurrence import (
    MaterializedOccurrence,
    Occurrence,
    OccurrenceKey,
    Window,
    occurrence_sort_key,
)
from ..models.class_template import ClassTemplate
from ..models.materialized_class import MaterializedClass
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .template_expander import expand

logger = logging.getLogger(__name__)


def merge_occurrences(
    templates: Iterable[ClassTemplate],
    materialized: Sequence[MaterializedClass],
    window: Window,
) -> List[Occurrence]:
    """Materialized classes starting in the window plus every virtual occurrence they do not replace."""
    taken: Set[OccurrenceKey] = {
        OccurrenceKey(row.template_id, row.occurrence_start)
        for row in materialized
        if row.template_id is not None
    }
    merged: List[Occurrence] = [
        MaterializedOccurrence.from_model(row)
        for row in materialized
        if window.contains(row.occurrence_start)
    ]
    for template in templates:
        merged.extend(occ for occ in expand(template, window) if occ.key not in taken)
    return sorted(merged, key=occurrence_sort_key)


class CalendarService(BaseService):
    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.template_repository = RepositoryFactory.create_class_template_repository(db)
        self.class_repository = RepositoryFactory.create_materialized_class_repository(db)

    @BaseService.measure_operation("list_for_teacher")
    def list_for_teacher(self, teacher_id: str, window: Window) -> List[Occurrence]:
        templates = self.template_repository.list_for_teacher(teacher_id)
        materialized = self.class_repository.list_for_teacher_in_range(
            teacher_id, window.start, window.end
        )
        return merge_occurrences(templates, materialized, window)

    @BaseService.measure_operation("list_for_student")
    def list_for_student(self, student_id: str, window: Window) -> List[Occurrence]:
        templates = self.template_repository.list_for_student(student_id)
        own = self.class_repository.list_for_student_in_range(student_id, window.start, window.end)
        # Rows of the student's templates hide their virtual twins even if the student joined later
        of_templates = self.class_repository.list_for_templates_in_range(
            [t.id for t in templates], window.start, window.end
        )
        rows = {row.id: row for row in [*own, *of_templates]}
        return merge_occurrences(templates, list(rows.values()), window)
