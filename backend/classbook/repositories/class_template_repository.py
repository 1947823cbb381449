# backend/classbook/repositories/class_template_repository.py
"""Data access for recurring class templates and their participants."""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.class_template import ClassTemplate, TemplateParticipant
from .base_repository import BaseRepository


class ClassTemplateRepository(BaseRepository[ClassTemplate]):
    def __init__(self, db: Session):
        super().__init__(db, ClassTemplate)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(ClassTemplate.participants))

    def list_for_teacher(self, teacher_id: str) -> List[ClassTemplate]:
        query = self._apply_eager_loading(self._build_query()).filter(
            ClassTemplate.teacher_id == teacher_id
        )
        return self._execute_query(query.order_by(ClassTemplate.anchor_start))

    def list_for_student(self, student_id: str) -> List[ClassTemplate]:
        query = (
            self._apply_eager_loading(self._build_query())
            .join(TemplateParticipant, TemplateParticipant.template_id == ClassTemplate.id)
            .filter(TemplateParticipant.student_id == student_id)
        )
        return self._execute_query(query.order_by(ClassTemplate.anchor_start))

    def get_participant(self, template_id: str, student_id: str) -> Optional[TemplateParticipant]:
        try:
            return (
                self.db.query(TemplateParticipant)
                .filter(
                    TemplateParticipant.template_id == template_id,
                    TemplateParticipant.student_id == student_id,
                )
                .first()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error loading template participant: {str(e)}")
            raise RepositoryException("Failed to load template participant") from e

    def add_participant(self, template: ClassTemplate, student_id: str, status: str) -> TemplateParticipant:
        participant = TemplateParticipant(student_id=student_id, status=status)
        template.participants.append(participant)
        self.flush()
        return participant
