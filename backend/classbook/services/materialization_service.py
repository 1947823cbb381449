# backend/classbook/services/materialization_service.py
"""
Materialization Service for classbook

Turns a virtual occurrence into a durable class record exactly once.

The occurrence is always re-derived from the stored template; nothing the
client sends about the occurrence other than its key is trusted. The unique
constraint on (template_id, occurrence_start) is what guarantees a single
row under concurrency: the lookup before the insert is only a fast path,
and a losing insert is rolled back and answered with the winner's row.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Optional, Tuple, Union

from sqlalchemy.orm import Session

from ..core.clock import Clock
from ..core.enums import RoleName, TriggerReason
from ..core.exceptions import (
    ConcurrentMaterializationDetected,
    NotAParticipant,
    NotOwner,
    OccurrenceNotInSeries,
    ParticipantCopyFailed,
    ParticipantsMissing,
    RepositoryException,
    ServiceException,
    TemplateExpired,
    TemplateNotFound,
    ValidationException,
)
from ..domain.occurrence import (
    MaterializedOccurrence,
    OccurrenceKey,
    ParticipantSnapshot,
    VirtualOccurrence,
)
from ..models.class_template import ClassTemplate
from ..models.materialized_class import MaterializedClass
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .template_expander import BEYOND_SERIES_END, locate_occurrence

logger = logging.getLogger(__name__)

OUTCOME_CREATED = "created"
OUTCOME_EXISTING = "existing"
OUTCOME_CONCURRENT = "concurrent"


@dataclass(frozen=True)
class MaterializationResult:
    materialized_class: MaterializedClass
    outcome: str

    @property
    def class_id(self) -> str:
        return self.materialized_class.id

    @property
    def participants(self) -> Tuple[ParticipantSnapshot, ...]:
        return tuple(
            sorted(
                ParticipantSnapshot(p.student_id, p.status)
                for p in self.materialized_class.participants
            )
        )

    @property
    def occurrence(self) -> MaterializedOccurrence:
        return MaterializedOccurrence.from_model(self.materialized_class)


class MaterializationService(BaseService):
    """Idempotent conversion of template occurrences into class rows."""

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        super().__init__(db, clock)
        self.template_repository = RepositoryFactory.create_class_template_repository(db)
        self.class_repository = RepositoryFactory.create_materialized_class_repository(db)

    def get_template(self, template_id: str) -> ClassTemplate:
        template = self.template_repository.get_by_id(template_id)
        if template is None:
            raise TemplateNotFound(template_id)
        return template

    def authorize(self, template: ClassTemplate, caller: User) -> None:
        """
        Re-check the caller against durable state.

        Students must attend the template; teachers must own it. Any other
        caller is treated as a non-owner.
        """
        if caller.role == RoleName.STUDENT.value:
            if self.template_repository.get_participant(template.id, caller.id) is not None:
                return
            self._deny("not_a_participant", template.id, caller)
            raise NotAParticipant(template.id, caller.id)

        if caller.role == RoleName.TEACHER.value and template.teacher_id == caller.id:
            return
        self._deny("not_owner", template.id, caller)
        raise NotOwner(template.id, caller.id)

    def _deny(self, reason: str, template_id: str, caller: User) -> None:
        prometheus_metrics.inc_authorization_denied(reason)
        self.log_security_event(
            "materialization_denied",
            reason=reason,
            template_id=template_id,
            user_id=caller.id,
            role=caller.role,
        )

    def resolve_occurrence(self, template: ClassTemplate, occurrence_start: datetime) -> VirtualOccurrence:
        """Re-derive the occurrence at ``occurrence_start`` from the template."""
        try:
            key = OccurrenceKey.of(template.id, occurrence_start)
        except ValueError as exc:
            raise ValidationException(
                message="Occurrence start must include a timezone offset",
                code="NAIVE_DATETIME",
            ) from exc

        location = locate_occurrence(template, key.start)
        if location.found:
            return location.occurrence
        if location.reason == BEYOND_SERIES_END:
            raise TemplateExpired(template.id, location.expired_at)
        raise OccurrenceNotInSeries(template.id, key.start)

    @BaseService.measure_operation("materialize")
    def materialize(
        self,
        template_id: str,
        occurrence_start: datetime,
        caller: User,
        trigger_reason: Union[TriggerReason, str] = TriggerReason.STATUS_CHANGE,
    ) -> MaterializationResult:
        """
        Return the durable class for an occurrence, creating it on first use.

        Raises:
            TemplateNotFound, NotAParticipant, NotOwner, TemplateExpired,
            OccurrenceNotInSeries, ParticipantsMissing, ParticipantCopyFailed
        """
        template = self.get_template(template_id)
        self.authorize(template, caller)
        occurrence = self.resolve_occurrence(template, occurrence_start)

        existing = self.class_repository.find_by_occurrence(template.id, occurrence.start)
        if existing is not None:
            return self._finish(existing, OUTCOME_EXISTING)

        if not occurrence.participants:
            raise ParticipantsMissing(template.id)

        try:
            created = self._insert(occurrence, caller, TriggerReason(trigger_reason))
        except ConcurrentMaterializationDetected:
            winner = self.class_repository.find_by_occurrence(template.id, occurrence.start)
            if winner is None:
                self.logger.error(
                    "Unique violation without a readable winner",
                    extra={"template_id": template.id, "occurrence_start": occurrence.start.isoformat()},
                )
                raise ServiceException(code="MATERIALIZATION_UNRESOLVED")
            return self._finish(winner, OUTCOME_CONCURRENT)

        return self._finish(created, OUTCOME_CREATED)

    def _insert(
        self, occurrence: VirtualOccurrence, caller: User, trigger_reason: TriggerReason
    ) -> MaterializedClass:
        """Write the class row and its participants in one transaction."""
        with self.transaction():
            try:
                row = self.class_repository.create(
                    template_id=occurrence.template_id,
                    occurrence_start=occurrence.start,
                    occurrence_end=occurrence.end,
                    teacher_id=occurrence.teacher_id,
                    service_id=occurrence.service_id,
                    duration_minutes=occurrence.duration_minutes,
                    is_group_class=occurrence.is_group_class,
                    is_experimental=occurrence.is_experimental,
                    notes=occurrence.notes,
                    status=occurrence.status,
                    trigger_reason=trigger_reason.value,
                    materialized_by_id=caller.id,
                )
            except RepositoryException as exc:
                if self.class_repository.is_occurrence_unique_violation(exc.__cause__):
                    raise ConcurrentMaterializationDetected(
                        occurrence.template_id, occurrence.start
                    ) from exc
                raise ServiceException(code="MATERIALIZATION_FAILED") from exc

            try:
                self.class_repository.add_participants(row, occurrence.participants)
            except RepositoryException as exc:
                self.logger.error(
                    "Participant copy failed, class row rolled back",
                    extra={"template_id": occurrence.template_id, "error": str(exc.__cause__ or exc)},
                )
                raise ParticipantCopyFailed(occurrence.template_id) from exc
        return row

    def _finish(self, row: MaterializedClass, outcome: str) -> MaterializationResult:
        prometheus_metrics.inc_materialization(outcome)
        self.log_operation(
            "materialize",
            template_id=row.template_id,
            occurrence_start=row.occurrence_start.isoformat(),
            class_id=row.id,
            outcome=outcome,
        )
        return MaterializationResult(materialized_class=row, outcome=outcome)
