# backend/classbook/repositories/materialized_class_repository.py
"""
Data access for materialized classes.

``find_by_occurrence`` is the idempotency lookup; the unique constraint on
(template_id, occurrence_start) is what actually guarantees a single row.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..domain.occurrence import ParticipantSnapshot
from ..models.materialized_class import (
    OCCURRENCE_UNIQUE_CONSTRAINT,
    MaterializedClass,
    MaterializedParticipant,
)
from .base_repository import BaseRepository

# SQLite reports the violated columns instead of the constraint name
_SQLITE_OCCURRENCE_VIOLATION = "unique constraint failed: classes.template_id, classes.occurrence_start"


class MaterializedClassRepository(BaseRepository[MaterializedClass]):
    def __init__(self, db: Session):
        super().__init__(db, MaterializedClass)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(MaterializedClass.participants))

    def find_by_occurrence(self, template_id: str, occurrence_start: datetime) -> Optional[MaterializedClass]:
        try:
            return (
                self._apply_eager_loading(self._build_query())
                .filter(
                    MaterializedClass.template_id == template_id,
                    MaterializedClass.occurrence_start == occurrence_start,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error looking up occurrence {template_id}@{occurrence_start}: {str(e)}")
            raise RepositoryException("Failed to look up materialized occurrence") from e

    def add_participants(
        self, materialized_class: MaterializedClass, snapshots: Sequence[ParticipantSnapshot]
    ) -> List[MaterializedParticipant]:
        """Copy participant snapshots onto a class row. Does NOT commit."""
        try:
            rows = [
                MaterializedParticipant(student_id=snapshot.student_id, status=snapshot.status)
                for snapshot in snapshots
            ]
            materialized_class.participants.extend(rows)
            self.db.flush()
            return rows
        except SQLAlchemyError as e:
            self.logger.error(f"Error copying participants to class {materialized_class.id}: {str(e)}")
            raise RepositoryException("Failed to copy class participants") from e

    def get_participant(self, class_id: str, student_id: str) -> Optional[MaterializedParticipant]:
        try:
            return (
                self.db.query(MaterializedParticipant)
                .filter(
                    MaterializedParticipant.class_id == class_id,
                    MaterializedParticipant.student_id == student_id,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading class participant: {str(e)}")
            raise RepositoryException("Failed to load class participant") from e

    def list_for_teacher_in_range(
        self, teacher_id: str, start: datetime, end: Optional[datetime]
    ) -> List[MaterializedClass]:
        query = self._overlapping(start, end).filter(MaterializedClass.teacher_id == teacher_id)
        return self._execute_query(query.order_by(MaterializedClass.occurrence_start))

    def list_for_student_in_range(
        self, student_id: str, start: datetime, end: Optional[datetime]
    ) -> List[MaterializedClass]:
        query = self._overlapping(start, end).filter(
            MaterializedClass.participants.any(MaterializedParticipant.student_id == student_id)
        )
        return self._execute_query(query.order_by(MaterializedClass.occurrence_start))

    def list_for_templates_in_range(
        self, template_ids: Iterable[str], start: datetime, end: Optional[datetime]
    ) -> List[MaterializedClass]:
        ids = list(template_ids)
        if not ids:
            return []
        query = self._overlapping(start, end).filter(MaterializedClass.template_id.in_(ids))
        return self._execute_query(query.order_by(MaterializedClass.occurrence_start))

    def is_occurrence_unique_violation(self, exc: BaseException) -> bool:
        """True when ``exc`` is a violation of the (template_id, occurrence_start) key."""
        if not isinstance(exc, IntegrityError):
            return False
        orig = getattr(exc, "orig", None)
        if self.dialect_name == "postgresql":
            diag = getattr(orig, "diag", None)
            constraint = getattr(diag, "constraint_name", None)
            if constraint:
                return constraint == OCCURRENCE_UNIQUE_CONSTRAINT
        message = str(orig or exc).lower()
        return OCCURRENCE_UNIQUE_CONSTRAINT in message or _SQLITE_OCCURRENCE_VIOLATION in message

    def _overlapping(self, start: datetime, end: Optional[datetime]) -> Query:
        query = self._apply_eager_loading(self._build_query()).filter(
            MaterializedClass.occurrence_end > start
        )
        if end is not None:
            query = query.filter(MaterializedClass.occurrence_start < end)
        return query
