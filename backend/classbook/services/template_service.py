# backend/classbook/services/template_service.py
"""
Template Service for classbook

Creates recurring class templates, ends their recurrence and lists their
occurrences for a window.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.enums import RoleName
from ..core.exceptions import (
    ForbiddenException,
    InvalidRecurrence,
    NotFoundException,
    NotOwner,
    ValidationException,
)
from ..core.timezone_utils import ensure_utc, get_timezone
from ..domain.occurrence import Occurrence, Window
from ..domain.recurrence import RecurrenceRule
from ..models.class_service import ClassService
from ..models.class_template import ClassTemplate
from ..models.user import User
from ..repositories.factory import RepositoryFactory
from ..schemas.class_template import ClassTemplateCreate
from .base import BaseService
from .calendar_service import merge_occurrences
from .materialization_service import MaterializationService

logger = logging.getLogger(__name__)


class TemplateService(BaseService):
    def __init__(
        self,
        db: Session,
        clock: Optional[Clock] = None,
        materialization_service: Optional[MaterializationService] = None,
    ):
        super().__init__(db, clock)
        self.materialization_service = materialization_service or MaterializationService(db, self.clock)
        self.template_repository = RepositoryFactory.create_class_template_repository(db)
        self.class_repository = RepositoryFactory.create_materialized_class_repository(db)
        self.user_repository = RepositoryFactory.create_base_repository(db, User)
        self.service_repository = RepositoryFactory.create_base_repository(db, ClassService)

    def _require_teacher(self, caller: User) -> None:
        if caller.role != RoleName.TEACHER.value:
            raise ForbiddenException(
                message="Only teachers can manage recurring classes",
                code="TEACHERS_ONLY",
            )

    def _validate_students(self, student_ids: List[str]) -> None:
        for student_id in student_ids:
            student = self.user_repository.get_by_id(student_id)
            if student is None or student.role != RoleName.STUDENT.value:
                raise ValidationException(
                    message="One of the participants is not a known student",
                    code="UNKNOWN_STUDENT",
                    details={"student_id": student_id},
                )

    @BaseService.measure_operation("create_template")
    def create_template(self, teacher: User, data: ClassTemplateCreate) -> ClassTemplate:
        """
        Create a recurring class with its participants.

        Raises:
            ForbiddenException: If the caller is not a teacher
            InvalidRecurrence: If the termination mode is not exactly one
            ValidationException: For unknown timezones or students
            NotFoundException: If the service is not the teacher's
        """
        self._require_teacher(teacher)
        anchor = ensure_utc(data.anchor_start)
        rule = RecurrenceRule(
            frequency=data.frequency,
            end=data.recurrence_end,
            count=data.occurrence_count,
            is_infinite=data.is_infinite,
        )
        if rule.end is not None and rule.end < anchor:
            raise InvalidRecurrence("recurrence end precedes the first occurrence")

        try:
            get_timezone(data.timezone)
        except ValueError as exc:
            raise ValidationException(
                message="Unknown timezone",
                code="INVALID_TIMEZONE",
                details={"timezone": data.timezone},
            ) from exc

        if data.service_id is not None:
            service = self.service_repository.get_by_id(data.service_id)
            if service is None or service.teacher_id != teacher.id:
                raise NotFoundException(
                    message="Service not found",
                    code="SERVICE_NOT_FOUND",
                    details={"service_id": data.service_id},
                )

        self._validate_students([p.student_id for p in data.participants])

        with self.transaction():
            template = self.template_repository.create(
                teacher_id=teacher.id,
                service_id=data.service_id,
                anchor_start=anchor,
                duration_minutes=data.duration_minutes,
                timezone=data.timezone,
                frequency=rule.frequency.value,
                recurrence_end=ensure_utc(rule.end) if rule.end is not None else None,
                occurrence_count=rule.count,
                is_infinite=rule.is_infinite,
                is_group_class=data.is_group_class,
                is_experimental=data.is_experimental,
                notes=data.notes,
                status=data.status.value,
            )
            for participant in data.participants:
                self.template_repository.add_participant(
                    template, participant.student_id, participant.status.value
                )

        self.log_operation(
            "create_template",
            template_id=template.id,
            teacher_id=teacher.id,
            frequency=template.frequency,
            participant_count=len(data.participants),
        )
        return template

    @BaseService.measure_operation("end_recurrence")
    def end_recurrence(self, template_id: str, teacher: User, end: datetime) -> ClassTemplate:
        """
        Stop a series at ``end``; later occurrences no longer exist.

        The template switches to date-bounded termination. Classes already
        materialized after ``end`` are left untouched.
        """
        template = self.materialization_service.get_template(template_id)
        if teacher.role != RoleName.TEACHER.value or template.teacher_id != teacher.id:
            self.log_security_event(
                "end_recurrence_denied", template_id=template_id, user_id=teacher.id
            )
            raise NotOwner(template_id, teacher.id)

        end = ensure_utc(end)
        if end < ensure_utc(template.anchor_start):
            raise InvalidRecurrence("recurrence end precedes the first occurrence")

        with self.transaction():
            template.recurrence_end = end
            template.occurrence_count = None
            template.is_infinite = False
            self.template_repository.flush()

        self.log_operation("end_recurrence", template_id=template_id, recurrence_end=end.isoformat())
        return template

    @BaseService.measure_operation("list_template_occurrences")
    def list_occurrences(self, template_id: str, caller: User, window: Window) -> List[Occurrence]:
        """Occurrences of one template in ``window``, materialized ones replacing their twins."""
        template = self.materialization_service.get_template(template_id)
        self.materialization_service.authorize(template, caller)
        materialized = self.class_repository.list_for_templates_in_range(
            [template.id], window.start, window.end
        )
        return merge_occurrences([template], materialized, window)
